"""H5P npm mirror: publish content-type libraries from the H5P Hub to npm."""

__version__ = "0.1.0"
