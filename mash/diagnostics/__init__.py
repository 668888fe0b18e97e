from .telemetry import LoggingTelemetrySink, NullTelemetrySink, TelemetrySink

__all__ = ['TelemetrySink', 'LoggingTelemetrySink', 'NullTelemetrySink']
