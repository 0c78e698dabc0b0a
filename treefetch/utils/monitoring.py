"""
Metrics collection for crawls and downloads.
"""

import time
import logging
from typing import Dict, Optional, Any, List
from dataclasses import dataclass, field
from datetime import datetime, timezone
import json

from prometheus_client import Counter, Histogram, CollectorRegistry
from prometheus_client import start_http_server


@dataclass
class MetricPoint:
    """Individual metric data point."""
    timestamp: float
    value: float
    labels: Dict[str, str] = field(default_factory=dict)


@dataclass
class Metric:
    """Metric container with history."""
    name: str
    description: str
    metric_type: str  # counter, gauge, histogram
    points: List[MetricPoint] = field(default_factory=list)
    current_value: float = 0.0


class MetricsCollector:
    """Collects metrics in memory and optionally mirrors them to Prometheus."""

    def __init__(self, enable_prometheus: bool = False, prometheus_port: int = 8000):
        self.logger = logging.getLogger(__name__)
        self.metrics: Dict[str, Metric] = {}
        self.enable_prometheus = enable_prometheus
        self.prometheus_port = prometheus_port

        self.prometheus_registry: Optional[CollectorRegistry] = None
        self.prometheus_metrics: Dict[str, Any] = {}

        if self.enable_prometheus:
            self._setup_prometheus()

    def _setup_prometheus(self):
        """Setup Prometheus metrics on a private registry."""
        self.prometheus_registry = CollectorRegistry()

        self.prometheus_metrics = {
            'pages_fetched_total': Counter(
                'treefetch_pages_fetched_total',
                'Pages fetched while discovering links',
                registry=self.prometheus_registry
            ),
            'terminal_resources_total': Counter(
                'treefetch_terminal_resources_total',
                'Resources not expanded further',
                ['reason'],
                registry=self.prometheus_registry
            ),
            'errors_total': Counter(
                'treefetch_errors_total',
                'Fetch and persist errors',
                ['error_type'],
                registry=self.prometheus_registry
            ),
            'downloads_total': Counter(
                'treefetch_downloads_total',
                'Resources persisted to disk',
                registry=self.prometheus_registry
            ),
            'bytes_downloaded_total': Counter(
                'treefetch_bytes_downloaded_total',
                'Bytes written to disk',
                registry=self.prometheus_registry
            ),
            'response_time_seconds': Histogram(
                'treefetch_response_time_seconds',
                'Time to first byte of crawl requests',
                registry=self.prometheus_registry
            ),
        }

        self.logger.info("Prometheus metrics initialized")

    def start_prometheus_server(self):
        """Start Prometheus metrics HTTP server."""
        if not self.enable_prometheus:
            return

        try:
            start_http_server(self.prometheus_port, registry=self.prometheus_registry)
            self.logger.info(f"Prometheus metrics server started on port {self.prometheus_port}")
        except OSError as e:
            self.logger.error(f"Failed to start Prometheus server: {e}")

    def record_metric(self, name: str, value: float, labels: Optional[Dict[str, str]] = None,
                      description: str = "", metric_type: str = "gauge", delta: float = 0.0):
        """Record a metric value."""
        labels = labels or {}

        if name not in self.metrics:
            self.metrics[name] = Metric(
                name=name,
                description=description,
                metric_type=metric_type
            )

        metric = self.metrics[name]
        metric.points.append(MetricPoint(timestamp=time.time(), value=value, labels=labels))
        metric.current_value = value

        # Keep only recent points (last 1000)
        if len(metric.points) > 1000:
            metric.points = metric.points[-1000:]

        if self.enable_prometheus and name in self.prometheus_metrics:
            prom_metric = self.prometheus_metrics[name]
            target = prom_metric.labels(**labels) if labels else prom_metric

            if metric_type == 'counter':
                target.inc(delta)
            elif metric_type == 'histogram':
                target.observe(value)

    def increment_counter(self, name: str, labels: Optional[Dict[str, str]] = None,
                          description: str = "", amount: float = 1):
        """Increment a counter metric."""
        current_value = 0
        if name in self.metrics:
            current_value = self.metrics[name].current_value

        self.record_metric(name, current_value + amount, labels, description, "counter", amount)

    def observe_histogram(self, name: str, value: float, labels: Optional[Dict[str, str]] = None,
                          description: str = ""):
        """Record a histogram observation."""
        self.record_metric(name, value, labels, description, "histogram")

    def get_current_values(self) -> Dict[str, float]:
        """Get current values of all metrics."""
        return {name: metric.current_value for name, metric in self.metrics.items()}

    def export_metrics_json(self, file_path: str):
        """Export metrics to JSON file."""
        export_data = {
            'export_time': datetime.now(timezone.utc).isoformat(),
            'metrics': {}
        }

        for name, metric in self.metrics.items():
            export_data['metrics'][name] = {
                'description': metric.description,
                'type': metric.metric_type,
                'current_value': metric.current_value,
                'points': [
                    {
                        'timestamp': point.timestamp,
                        'value': point.value,
                        'labels': point.labels
                    }
                    for point in metric.points[-100:]
                ]
            }

        with open(file_path, 'w') as f:
            json.dump(export_data, f, indent=2)

        self.logger.info(f"Metrics exported to {file_path}")


class CrawlerMonitor:
    """High-level monitoring interface for crawls and downloads."""

    def __init__(self, metrics_collector: Optional[MetricsCollector] = None):
        self.metrics = metrics_collector or MetricsCollector()
        self.start_time = time.time()

    def record_page_fetched(self, url: str, response_time: float):
        self.metrics.increment_counter('pages_fetched_total', description='Pages fetched')
        self.metrics.observe_histogram('response_time_seconds', response_time,
                                       description='HTTP response time')

    def record_terminal(self, url: str, reason: str):
        """Record a resource whose branch ends here (other, unknown, error)."""
        self.metrics.increment_counter('terminal_resources_total', {'reason': reason},
                                       'Resources not expanded')

    def record_error(self, error_type: str):
        self.metrics.increment_counter('errors_total', {'error_type': error_type}, 'Errors')

    def record_download(self, url: str, size: int):
        self.metrics.increment_counter('downloads_total', description='Downloads')
        self.metrics.increment_counter('bytes_downloaded_total', description='Bytes downloaded',
                                       amount=size)

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        return {
            'runtime_seconds': time.time() - self.start_time,
            'metrics': self.metrics.get_current_values(),
        }


# Global monitoring instance
_global_monitor: Optional[CrawlerMonitor] = None


def initialize_monitoring(enable_prometheus: bool = False, prometheus_port: int = 8000) -> CrawlerMonitor:
    """Initialize global monitoring."""
    global _global_monitor

    metrics_collector = MetricsCollector(enable_prometheus, prometheus_port)
    _global_monitor = CrawlerMonitor(metrics_collector)

    return _global_monitor


def get_monitor() -> CrawlerMonitor:
    """Get the global monitor, creating an in-memory one on first use."""
    global _global_monitor
    if _global_monitor is None:
        _global_monitor = CrawlerMonitor()
    return _global_monitor
