"""System administration helpers.

The command-line tools live in their own modules; each one exposes a
``main(argv)`` entry point that returns a process exit code.
"""

__all__: list[str] = ["update_property"]
