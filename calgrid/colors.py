from typing import Optional


class Colors:
    """ANSI color codes for terminal output."""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'

    RED = '\033[91m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    BLUE = '\033[94m'
    MAGENTA = '\033[95m'
    CYAN = '\033[96m'
    WHITE = '\033[97m'

    # Event color names understood by the text report
    PALETTE = ('red', 'green', 'yellow', 'blue', 'magenta', 'cyan', 'white')

    @staticmethod
    def for_event(color: Optional[str]) -> str:
        """Escape code for an event's color name, BLUE when unknown."""
        if color and color.lower() in Colors.PALETTE:
            return getattr(Colors, color.upper())
        return Colors.BLUE

    @staticmethod
    def disable():
        """Disable colors (for piping or when colors not supported)."""
        for attr in dir(Colors):
            if attr.isupper() and attr != 'PALETTE':
                setattr(Colors, attr, '')
