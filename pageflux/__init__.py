"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           pageflux/__init__.py
Version:        1.0.0
Description:    Page composition and incremental assembly engine. Contains the
                source registry, page sequence model, thumbnail cache,
                assembly engine and debounced preview pipeline.
------------------------------------------------------------------------------
"""

__version__ = "1.0.0"
