"""Public interpreter entry points.

Internal grammar constants are intentionally not re-exported from this module.
Use :class:`codequest.interpreter.core.CommandInterpreter` as the stable API.
"""

from codequest.interpreter.core import CommandInterpreter

__all__ = ["CommandInterpreter"]
