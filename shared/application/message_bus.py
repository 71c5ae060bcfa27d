"""
Message Bus

Routes commands to their single handler and domain events to any number
of subscribers. Handlers are wired in each app's ``AppConfig.ready()``.
"""

from collections import defaultdict
from typing import Any, Callable, DefaultDict, Dict, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)

CommandHandler = Callable[[Any], Any]
EventHandler = Callable[[DomainEvent], None]


class MessageBus:
    """
    Commands: exactly one handler per command type; its errors reach the caller
    Events: any number of handlers per event type; a failing one is logged
    and skipped
    """

    def __init__(self):
        self._command_handlers: Dict[Type, CommandHandler] = {}
        self._event_handlers: DefaultDict[Type[DomainEvent], List[EventHandler]] = defaultdict(list)

    def register_command_handler(self, command_type: Type, handler: CommandHandler):
        """
        Bind a command type to its handler

        ``ready()`` can run more than once, so binding the same callable
        again is accepted; binding a second, different one raises.
        """
        current = self._command_handlers.get(command_type)
        if current is handler:
            return
        if current is not None:
            raise ValueError(
                f"{command_type.__name__} is already handled by {current.__name__}; "
                "a command has exactly one handler."
            )
        self._command_handlers[command_type] = handler
        logger.debug(f"{command_type.__name__} -> {handler.__name__}")

    def register_event_handler(self, event_type: Type[DomainEvent], handler: EventHandler):
        subscribers = self._event_handlers[event_type]
        if handler in subscribers:
            return
        subscribers.append(handler)
        logger.debug(f"{event_type.__name__} -> {handler.__name__} ({len(subscribers)} subscriber(s))")

    def handle_command(self, command: Any) -> Any:
        name = type(command).__name__
        handler = self._command_handlers.get(type(command))
        if handler is None:
            raise ValueError(f"No handler registered for command {name}")

        logger.info(f"Handling command: {name}")
        try:
            return handler(command)
        except Exception as e:
            logger.error(f"Command {name} failed: {e}")
            raise

    def publish_events(self, events: List[DomainEvent]):
        for event in events:
            self._dispatch(event)

    def _dispatch(self, event: DomainEvent):
        name = type(event).__name__
        subscribers = self._event_handlers.get(type(event))
        if not subscribers:
            logger.warning(f"No handlers registered for event {name}")
            return

        logger.info(f"Publishing event: {name} (ID: {event.event_id})")
        for handler in list(subscribers):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Handler {handler.__name__} failed for {name}: {e}", exc_info=True)


message_bus = MessageBus()
