"""
This package contains the preview pipeline.

The pipeline sequences the services (classify, convert, probe, trim) for one
asset and reports coarse progress stages to an optional callback.
"""
