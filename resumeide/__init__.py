"""
ResumeIDE - build backend for a LaTeX resume editor

Compiles LaTeX documents with an installed TeX engine and turns the engine's
output into structured diagnostics for display.

Architecture:
- Building Context: Compiler discovery, compilation, PDF placement
- Diagnostics Context: Compiler output parsing
"""

__version__ = "0.1.0"
