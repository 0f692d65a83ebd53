import asyncio
import logging
from typing import Callable, Dict, List, Any

from fastapi import Request
from sqlalchemy.ext.asyncio import async_sessionmaker

logger = logging.getLogger(__name__)

# Listeners are async callables taking keyword arguments
EventHandler = Callable[..., Any]

class EventDispatcher:
    """
    In-process pub/sub for side effects that must not block a response,
    such as AI usage analytics.

    Built once at startup with the application's session factory. Every dispatch
    runs in a fresh session that is handed to listeners as `db` and committed
    once all of them have finished. Usually scheduled through BackgroundTasks.
    """
    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory
        self._listeners: Dict[str, List[EventHandler]] = {}

    def subscribe(self, event_name: str, handler: EventHandler):
        if event_name not in self._listeners:
            self._listeners[event_name] = []
        self._listeners[event_name].append(handler)
        logger.info(f"Subscribed {handler.__name__} to '{event_name}'")

    async def dispatch(self, event_name: str, **kwargs):
        """
        Dispatches an event to all subscribed listeners concurrently.
        Injects a fresh AsyncSession into kwargs as 'db'.
        Never raises: listener and commit failures are logged.
        """
        if event_name not in self._listeners or not self._listeners[event_name]:
            logger.debug(f"Event '{event_name}' dispatched, but no listeners attached.")
            return

        logger.info(f"Dispatching event '{event_name}' to {len(self._listeners[event_name])} listeners.")

        async with self._session_factory() as session:
            kwargs["db"] = session
            try:
                tasks = [handler(**kwargs) for handler in self._listeners[event_name]]
                results = await asyncio.gather(*tasks, return_exceptions=True)
                for res in results:
                    if isinstance(res, Exception):
                        logger.error(f"Error in listener for '{event_name}': {res}", exc_info=res)

                # Commit all database changes made by listeners during this event cycle
                await session.commit()
            except Exception as e:
                logger.error(f"Failed to complete event dispatch for '{event_name}': {e}")
                await session.rollback()

def get_dispatcher(request: Request) -> EventDispatcher:
    """
    Dependency returning the dispatcher created at startup.
    """
    return request.app.state.dispatcher
