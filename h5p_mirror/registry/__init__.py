"""Registry layer: translating H5P metadata into npm packages and publishing them.

- Naming: package names, dependency ranges, SPDX licenses
- Packaging: building and writing ``package.json``
- Publishing: running ``npm publish`` and tallying failures
"""
