# pkitree/utils/formatting.py

from __future__ import annotations

import sys
from pkitree.constants import COLOUR, COLOUR_BRIGHT, COLOUR_RESET
from pkitree.constants import COLOUR_ERROR, COLOUR_OK, COLOUR_WARNING
from pkitree.constants import STATUS_COLUMN

def title(text: str, level: int=1, extra=None) -> None:
    """
    Prints a title in a consistant format

    Args:
        text (str): The text to be displayed
        level (int):  The level of heading (optional)
        extra (str): Decoration (level 1) or highlighted suffix (level 2)
    """

    reset = COLOUR_RESET

    if level == 1:
        if extra is None:
            extra = '---===oooO'

        print(f'{extra} {COLOUR["bold_yellow"]}{text}{reset} {extra[::-1]}\n')

    elif level == 2:
        if extra is not None:
            print(f'{COLOUR["bold_yellow"]}{text}{reset} [ {COLOUR_BRIGHT}{extra}{reset} ]\n')
        else:
            print(f'{COLOUR["bold_yellow"]}{text}{reset}\n')

    elif level == 3:
        print(f'{COLOUR["bold_white"]}{text}{reset}\n')

    elif level == 7:
        print(f'{text}')

    elif level == 9:
        print(f'{text}...', end='')

    else:
        print(f'{COLOUR["cyan"]}{text}{reset}\n')

def print_result(success, *, ok_msg='  OK  ', failed_msg='FAILED') -> bool:
    """
    Prints a ANSI success or failure message in a RedHat theme

    Args:
        success (bool): Success test condition
        ok_msg (str): OK message text
        failed_msg (str): Failed message text
    """

    column = f'\033[{STATUS_COLUMN}G'

    if success:
        msg, msg_colour = ok_msg, COLOUR_OK
    else:
        msg, msg_colour = failed_msg, COLOUR_ERROR

    print(f'{column}[ {msg_colour}{msg}{COLOUR_RESET} ]')

    return bool(success)

def error(text: str, exit_code: int=0) -> None:
    """
    Prints an error message to stderr, and exits if an exit code is given.
    """

    print(f'{COLOUR_ERROR}Error:{COLOUR_RESET} {text}', file=sys.stderr)

    if exit_code != 0:
        sys.exit(exit_code)

def warning(text: str) -> None:
    """
    Prints a warning message to stderr.
    """

    print(f'⚠️ {COLOUR_WARNING}Warning:{COLOUR_RESET} {text}', file=sys.stderr)
