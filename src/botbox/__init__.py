"""botbox - bootstrap and sync CLI for multi-agent coding workflows

Philosophy:
- Ruthless simplicity
- Brick architecture (self-contained modules)
- Never destroy user-authored content
- Fail fast with helpful guidance

botbox scaffolds a project's agent-facing documentation, keeps the bundled
workflow docs, scripts and prompts in sync with the installed version, and
migrates the project config forward as the tool evolves.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
