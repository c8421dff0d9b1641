"""Package entry point for ``python -m subtitle_segmenter``.

WHY: Users run the segmenter as ``python -m subtitle_segmenter input.json``.
Python's ``-m`` flag looks for ``__main__.py`` inside the package and
executes it.

HOW: Delegates to the CLI's main() function.
"""

from subtitle_segmenter.cli import main

if __name__ == "__main__":
    main()
