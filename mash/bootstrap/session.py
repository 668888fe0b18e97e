from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from mash.core.context import ContextStore
from mash.core.phases import BootstrapState

logger = logging.getLogger(__name__)


@contextmanager
def bootstrap_session(context: ContextStore, state: Optional[BootstrapState] = None) -> Iterator[BootstrapState]:
    """Own a BootstrapState for one run and finalize it on every exit path."""
    state = state if state is not None else BootstrapState()
    context.set('run_id', state.run_id)
    logger.debug('Bootstrap session %s started', state.run_id)
    try:
        yield state
    finally:
        state.finalize()
