"""text2podcast - turn text into spoken podcast episodes."""

__version__ = "0.1.0"
