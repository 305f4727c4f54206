"""
Imagoid_Libs - Imagoid Library Modules

This package contains the image transformation pipeline,
organized into specialized sub-packages:

- ImageEditingLib: Colors, size/position parsing and the ImageResource wrapper
- TransformLib: Resize, alpha and paste transformations, chains and the image query parser
"""

__version__ = "0.1.0"
