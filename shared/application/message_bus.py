"""
Message Bus

Routes booking commands to their single handler and fans domain events
out to every subscriber.

Command handler errors reach the caller untouched: reservation errors
carry the message and status the API layer shows. Event subscribers run
after the commit that produced the event, so a failing subscriber is
logged and skipped; it cannot undo the committed change.
"""

from typing import Any, Callable, Dict, Iterable, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)

CommandHandler = Callable[[Any], Any]
EventHandler = Callable[[DomainEvent], None]


def _describe(command: Any) -> str:
    booking_id = getattr(command, 'booking_id', None)
    name = type(command).__name__
    return f"{name}(booking_id={booking_id})" if booking_id is not None else name


class MessageBus:
    """
    Commands: exactly one handler per command type
    Events: any number of subscribers per event type, each added once
    """

    def __init__(self):
        self._command_handlers: Dict[Type, CommandHandler] = {}
        self._event_handlers: Dict[Type[DomainEvent], List[EventHandler]] = {}

    def register_command_handler(self, command_type: Type, handler: CommandHandler):
        if command_type in self._command_handlers:
            raise ValueError(f"{command_type.__name__} already has a handler")
        self._command_handlers[command_type] = handler

    def register_event_handler(self, event_type: Type[DomainEvent], handler: EventHandler):
        subscribers = self._event_handlers.setdefault(event_type, [])
        if handler not in subscribers:
            subscribers.append(handler)

    @property
    def command_types(self) -> List[Type]:
        return list(self._command_handlers)

    def handle_command(self, command: Any) -> Any:
        """
        Run the handler registered for type(command) and return its result.

        Raises:
            ValueError: If nothing handles this command type
        """
        handler = self._command_handlers.get(type(command))
        if handler is None:
            raise ValueError(f"No handler registered for command {type(command).__name__}")

        logger.debug(f"Handling {_describe(command)}")
        try:
            return handler(command)
        except Exception as e:
            logger.warning(f"{_describe(command)} failed: {e.__class__.__name__}: {e}")
            raise

    def publish_events(self, events: Iterable[DomainEvent]):
        for event in events:
            subscribers = self._event_handlers.get(type(event), [])
            if not subscribers:
                logger.debug(f"No subscribers for {type(event).__name__}")
                continue

            for handler in subscribers:
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        f"Subscriber {getattr(handler, '__name__', handler)!r} failed on "
                        f"{type(event).__name__} {event.event_id}"
                    )


# Process-wide bus for domain events published after commit
message_bus = MessageBus()
