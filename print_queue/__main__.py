"""Package entry point for ``python -m print_queue``.

WHY: Operators run the bot as ``python -m print_queue serve`` without
installing the console script.

HOW: Delegates straight to the CLI's main() function.
"""

from print_queue.cli import main

if __name__ == "__main__":
    main()
