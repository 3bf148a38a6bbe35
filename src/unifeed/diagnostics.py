from __future__ import annotations

import logging
from typing import Optional

from .models import Diagnostic

logger = logging.getLogger(__name__)


class DiagnosticLog:
    """Collects recovered item-level problems for a single parse call.

    Records go to the caller's ``sink`` list when one is given and are always
    logged at DEBUG level. Nothing recorded here changes the parse result.
    """

    def __init__(self, sink: Optional[list[Diagnostic]] = None) -> None:
        self.sink = sink

    def add(self, code: str, message: str, context: str = "") -> None:
        diagnostic = Diagnostic(code=code, message=message, context=context)
        logger.debug("%s: %s (%r)", code, message, context)
        if self.sink is not None:
            self.sink.append(diagnostic)
