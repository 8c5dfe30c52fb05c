# Telnet command and option bytes, RFC 854 and friends. Only the subset
# negotiated by the stream server is declared here.
IAC = b"\xff"
DONT = b"\xfe"
DO = b"\xfd"
WONT = b"\xfc"
WILL = b"\xfb"
SB = b"\xfa"
SE = b"\xf0"
NAWS = b"\x1f"
SGA = b"\x03"
ECHO = b"\x01"

#: Keystroke that ends a session, ^C.
CTRL_C = b"\x03"

__all__ = (
    "CTRL_C",
    "DO",
    "DONT",
    "ECHO",
    "IAC",
    "NAWS",
    "SB",
    "SE",
    "SGA",
    "WILL",
    "WONT",
    "name_command",
    "name_commands",
)

#: List of globals that may match an iac command option bytes
_DEBUG_OPTS = dict(
    [
        (value, key)
        for key, value in globals().items()
        if key in ("IAC", "DONT", "DO", "WONT", "WILL", "SB", "SE", "NAWS", "SGA", "ECHO")
    ]
)


def name_command(byte):
    """Return string description for (maybe) telnet command byte."""
    return _DEBUG_OPTS.get(byte, repr(byte))


def name_commands(cmds, sep=" "):
    """Return string description for array of (maybe) telnet command bytes."""
    return sep.join([name_command(bytes([byte])) for byte in cmds])
