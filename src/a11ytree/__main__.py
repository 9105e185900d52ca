"""
The startup module of a11ytree, which runs when a11ytree is launched
with `python -m a11ytree`.

Trampolines to the main module at a11ytree.main.
"""

from a11ytree.main import main

if __name__ == '__main__':
    main()
