"""Module entrypoint for `python -m agentterm`."""

try:
    from .cli import run
except ImportError:
    # Script execution outside package context, e.g. runpy.run_path.
    from agentterm.cli import run


if __name__ == "__main__":
    raise SystemExit(run())
