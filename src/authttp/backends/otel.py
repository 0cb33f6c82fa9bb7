from typing import Dict

from opentelemetry import trace
from opentelemetry.baggage.propagation import W3CBaggagePropagator
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from authttp.types import HeadersInterceptor


class TracedHeadersInterceptor(HeadersInterceptor):
    """Propagates the current span and baggage as W3C headers"""

    def intercept_headers(self, headers: Dict[str, str]) -> Dict[str, str]:
        span = trace.get_current_span()

        if span.get_span_context().is_valid:
            carrier: dict[str, str] = {}
            W3CBaggagePropagator().inject(carrier)
            TraceContextTextMapPropagator().inject(carrier)
            headers.update(carrier)

        return headers
