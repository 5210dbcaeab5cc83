from opentelemetry import trace
from opentelemetry.baggage.propagation import W3CBaggagePropagator
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from restwire.http.client import RequestMiddleware
from restwire.http.transport import TransportRequest


class TracedRequestMiddleware(RequestMiddleware):
    """Propagates the current trace context and baggage as request headers"""

    def on_request(self, request: TransportRequest) -> TransportRequest:

        span = trace.get_current_span()

        if not span.get_span_context().is_valid:
            return request

        headers: dict[str, str] = {}
        W3CBaggagePropagator().inject(headers)
        TraceContextTextMapPropagator().inject(headers)

        for key, value in headers.items():
            request = request.with_header(key, value)

        return request
