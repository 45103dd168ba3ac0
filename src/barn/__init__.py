"""barn -- Run the executables in a directory over HTTP.

Each request to ``/<name>`` runs ``<root>/<name>`` after checking the
caller's Basic credentials against regex-defined groups, and streams
the program's stdout and stderr back as live HTML.
"""

__version__ = "0.1.0"
