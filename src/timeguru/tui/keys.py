# SPDX-License-Identifier: MIT

UP = "up"
DOWN = "down"
PAGE_UP = "pageup"
PAGE_DOWN = "pagedown"
HOME = "home"
END = "end"
ENTER = "enter"
ESCAPE = "escape"
BACKSPACE = "backspace"
TAB = "tab"
CTRL_C = "ctrl-c"
UNKNOWN = "unknown"

# Raw sequences as returned by click.getchar(); the "\xe0"/"\x00" prefixed
# ones are what Windows consoles send for the navigation keys.
_SEQUENCES = {
    "\x1b[A": UP,
    "\x1bOA": UP,
    "\x1b[B": DOWN,
    "\x1bOB": DOWN,
    "\x1b[5~": PAGE_UP,
    "\x1b[6~": PAGE_DOWN,
    "\x1b[H": HOME,
    "\x1bOH": HOME,
    "\x1b[1~": HOME,
    "\x1b[7~": HOME,
    "\x1b[F": END,
    "\x1bOF": END,
    "\x1b[4~": END,
    "\x1b[8~": END,
    "\r": ENTER,
    "\n": ENTER,
    "\x1b": ESCAPE,
    "\x7f": BACKSPACE,
    "\x08": BACKSPACE,
    "\t": TAB,
    "\x03": CTRL_C,
    "\xe0H": UP,
    "\xe0P": DOWN,
    "\xe0I": PAGE_UP,
    "\xe0Q": PAGE_DOWN,
    "\xe0G": HOME,
    "\xe0O": END,
    "\x00H": UP,
    "\x00P": DOWN,
    "\x00I": PAGE_UP,
    "\x00Q": PAGE_DOWN,
    "\x00G": HOME,
    "\x00O": END,
}


def decode_key(raw: str) -> str:
    """
    Map a raw key string to a key name.

    Printable single characters are returned unchanged; unrecognised escape
    sequences become ``"unknown"`` so they never reach a text field.
    """
    if raw in _SEQUENCES:
        return _SEQUENCES[raw]
    if len(raw) == 1 and raw.isprintable():
        return raw
    return UNKNOWN


def is_printable(key: str) -> bool:
    return len(key) == 1 and key.isprintable()
