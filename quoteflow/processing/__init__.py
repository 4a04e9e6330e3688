"""Classification, routing and delivery of queued intake records."""
from quoteflow.processing.dispatcher import Dispatcher, reference_for
from quoteflow.processing.emitter import OutcomeEmitter
from quoteflow.processing.gateway import ClassificationGateway, GatewayReply, ReplyKind, parse_reply
from quoteflow.processing.router import RevisionRouter, RoutingDecision
from quoteflow.processing.templates import compose_message

__all__ = [
    "ClassificationGateway",
    "Dispatcher",
    "GatewayReply",
    "OutcomeEmitter",
    "ReplyKind",
    "RevisionRouter",
    "RoutingDecision",
    "compose_message",
    "parse_reply",
    "reference_for",
]
