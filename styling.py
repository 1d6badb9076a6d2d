# styling.py v2.0
# Part of NetDyn: Graph-Indexed Network Dynamics
# v2.0: Console-only styling.
# - Plotting is not part of this project, so the matplotlib styles are gone.
# - The console colour table `C` is the single place where the colours of
#   every construction report are decided.

from termcolor import cprint

# --- Console Colors (using termcolor names) ---
# Usage: cprint("Hello", C.INFO)
class C:
    HEADER = 'magenta'
    SUBHEADER = 'cyan'
    SUCCESS = 'green'
    WARNING = 'yellow'
    ERROR = 'red'
    INFO = 'white'
    DEBUG = 'grey'
    BOLD_ATTR = ['bold']


def report(message: str, color: str = C.INFO, verbose: bool = True, bold: bool = False):
    """Prints a construction-time message if reporting is switched on."""
    if not verbose:
        return
    cprint(message, color, attrs=C.BOLD_ATTR if bold else None)


if __name__ == "__main__":
    cprint("--- styling.py loaded ---", C.SUCCESS)
    cprint("Example usage:", C.SUBHEADER, attrs=C.BOLD_ATTR)
    cprint("  from styling import C, report", C.DEBUG)
    cprint("  report('Building index...', C.SUBHEADER, verbose=config.verbose)", C.DEBUG)
