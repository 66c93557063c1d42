"""
Keyboard State for the CHIP-8 VM
================================

The CHIP-8 keypad has 16 keys labelled 0-F:

    1 2 3 C
    4 5 6 D
    7 8 9 E
    A 0 B F

The host owns the key state and changes it between steps. The core only
queries it through KeyboardProtocol:
- is_key_down(index): point-in-time state of one key
- first_key_down(): lowest-numbered key that is down, or None

HOST_KEYMAP maps the left-hand block of a QWERTY keyboard onto the keypad,
so host front-ends can pass physical key names straight through:

    1 2 3 4        1 2 3 C
    Q W E R   ->   4 5 6 D
    A S D F        7 8 9 E
    Z X C V        A 0 B F
"""

from typing import Dict, List, Optional, Protocol, Union

NUM_KEYS = 16


# =============================================================================
# HOST KEY MAP
# =============================================================================

HOST_KEYMAP: Dict[str, int] = {
    "1": 0x1, "2": 0x2, "3": 0x3, "4": 0xC,
    "Q": 0x4, "W": 0x5, "E": 0x6, "R": 0xD,
    "A": 0x7, "S": 0x8, "D": 0x9, "F": 0xE,
    "Z": 0xA, "X": 0x0, "C": 0xB, "V": 0xF,
}


class KeyboardProtocol(Protocol):
    """
    Read-only query surface the executor uses.

    Any object with these two methods can stand in for Keyboard.
    """
    def is_key_down(self, key: int) -> bool:
        """Check whether keypad key 0-F is down."""
        ...

    def first_key_down(self) -> Optional[int]:
        """Lowest-numbered key that is down, or None."""
        ...


def resolve_key(key: Union[int, str]) -> int:
    """
    Convert a key reference to a keypad index.

    Accepts a keypad index (0-15), a host key name from HOST_KEYMAP
    (case-insensitive), or a hex digit string prefixed with '0x'
    or '$' (e.g. '0xA', '$F').

    Raises:
        ValueError: If the key cannot be resolved
    """
    if isinstance(key, int):
        if not 0 <= key < NUM_KEYS:
            raise ValueError(f"Keypad index must be 0-15, got {key}")
        return key

    name = key.strip().upper()
    if name in HOST_KEYMAP:
        return HOST_KEYMAP[name]

    for prefix in ("0X", "$"):
        if name.startswith(prefix):
            try:
                return resolve_key(int(name[len(prefix):], 16))
            except ValueError:
                break

    raise ValueError(f"Unknown key: {key!r}")


class Keyboard:
    """
    Sixteen-key keypad state.

    Example:
        >>> kb = Keyboard()
        >>> kb.key_down("W")
        >>> kb.is_key_down(0x5)
        True
        >>> kb.first_key_down()
        5
    """

    def __init__(self):
        self._state: List[bool] = [False] * NUM_KEYS

    def key_down(self, key: Union[int, str]) -> None:
        """Press a key (keypad index or host key name)."""
        self._state[resolve_key(key)] = True

    def key_up(self, key: Union[int, str]) -> None:
        """Release a key (keypad index or host key name)."""
        self._state[resolve_key(key)] = False

    def release_all(self) -> None:
        """Release every key."""
        self._state = [False] * NUM_KEYS

    def is_key_down(self, key: int) -> bool:
        """
        Check whether a key is down.

        Indices outside 0-15 (a register holding a value above $F) are
        reported as not down.
        """
        if not 0 <= key < NUM_KEYS:
            return False
        return self._state[key]

    def first_key_down(self) -> Optional[int]:
        """Lowest-numbered key that is down, or None."""
        for index, down in enumerate(self._state):
            if down:
                return index
        return None

    @property
    def pressed_keys(self) -> List[int]:
        """All keys currently down, in index order."""
        return [index for index, down in enumerate(self._state) if down]
