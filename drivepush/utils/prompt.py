"""
Utility for handling user interaction prompts.
"""
import sys


def prompt_yes_no(message: str, default: bool = False) -> bool:
    """
    Prompt user for a yes/no response.

    Args:
        message: Message to display to user
        default: Default response if user just presses Enter

    Returns:
        True for yes, False for no. An interrupted prompt counts as no.
    """
    default_prompt = "[y/N]" if not default else "[Y/n]"
    prompt_str = f"{message} {default_prompt}: "

    while True:
        try:
            response = input(prompt_str).strip().lower()

            if not response:
                return default

            if response.startswith('y'):
                return True

            if response.startswith('n'):
                return False

            print("Please enter 'yes' or 'no'")

        except (KeyboardInterrupt, EOFError):
            print("\nOperation cancelled by user")
            return False


def display_progress(current: int, total: int, message: str = "", width: int = 50) -> None:
    """
    Display a simple progress bar in the terminal.

    Args:
        current: Current progress value
        total: Total value for 100% completion
        message: Optional message to display with the progress bar
        width: Width of the progress bar in characters
    """
    progress = min(1.0, current / total if total > 0 else 1.0)
    filled_width = int(width * progress)
    bar = '█' * filled_width + '-' * (width - filled_width)
    percent = progress * 100

    sys.stdout.write(f"\r{message} [{bar}] {percent:.1f}% ({current}/{total})")
    sys.stdout.flush()

    if current >= total:
        sys.stdout.write('\n')
