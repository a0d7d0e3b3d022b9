"""Hub layer: catalog and library models plus the session contract.

The mirror never talks to the H5P Hub itself. A ``HubSession`` supplied by
the operator does the downloading and installing; this package describes
what such a session returns.
"""
