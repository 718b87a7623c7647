"""
Writing System LDML Mapper (wsldml) Package

Reads LDML locale descriptions into an in-memory writing system model and
writes the model back, merging into the previous version of the file.

ARCHITECTURAL GUARANTEE:
------------------------
Writing never destroys what the mapper does not understand:
    - Elements and attributes outside the modeled vocabulary
    - Vendor blocks from other namespaces
    - Comments and the document type declaration

The model (wsldml.model) contains ZERO knowledge of XML.
All LDML knowledge lives in the reader, writer and collation sub-mapper.
"""

__version__ = "0.1.0"
