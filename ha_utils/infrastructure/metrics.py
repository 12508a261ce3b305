"""
Prometheusメトリクス収集

コンテナ操作とファイル同期の監視メトリクスを収集・公開
"""
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Optional

DEFAULT_BUCKETS = [0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0]


@dataclass
class _Metric:
    name: str
    description: str
    labels: list[str] = field(default_factory=list)

    def _key(self, labels: dict) -> tuple:
        return tuple(str(labels.get(l, "")) for l in self.labels)


@dataclass
class Counter(_Metric):
    """カウンターメトリクス"""

    _values: dict[tuple, float] = field(default_factory=dict)

    def inc(self, value: float = 1.0, **labels) -> None:
        """カウンターを増加"""
        key = self._key(labels)
        self._values[key] = self._values.get(key, 0) + value

    def get(self, **labels) -> float:
        """現在の値を取得"""
        return self._values.get(self._key(labels), 0)


@dataclass
class Gauge(_Metric):
    """ゲージメトリクス"""

    _values: dict[tuple, float] = field(default_factory=dict)

    def inc(self, value: float = 1.0, **labels) -> None:
        key = self._key(labels)
        self._values[key] = self._values.get(key, 0) + value

    def dec(self, value: float = 1.0, **labels) -> None:
        key = self._key(labels)
        self._values[key] = self._values.get(key, 0) - value

    def get(self, **labels) -> float:
        return self._values.get(self._key(labels), 0)


@dataclass
class Histogram(_Metric):
    """ヒストグラムメトリクス"""

    buckets: list[float] = field(default_factory=lambda: list(DEFAULT_BUCKETS))
    _counts: dict[tuple, dict[float, int]] = field(default_factory=dict)
    _sums: dict[tuple, float] = field(default_factory=dict)
    _totals: dict[tuple, int] = field(default_factory=dict)

    def observe(self, value: float, **labels) -> None:
        """観測値を記録"""
        key = self._key(labels)
        counts = self._counts.setdefault(
            key, {**{b: 0 for b in self.buckets}, float("inf"): 0}
        )
        # 累積はエクスポート時に計算する
        for bucket in counts:
            if value <= bucket:
                counts[bucket] += 1
                break

        self._sums[key] = self._sums.get(key, 0) + value
        self._totals[key] = self._totals.get(key, 0) + 1

    def count(self, **labels) -> int:
        return self._totals.get(self._key(labels), 0)


class MetricsRegistry:
    """メトリクスレジストリ"""

    def __init__(self):
        self._metrics: dict[str, Counter | Gauge | Histogram] = {}

    def counter(self, name: str, description: str, labels: Optional[list[str]] = None) -> Counter:
        """カウンターを登録・取得"""
        if name not in self._metrics:
            self._metrics[name] = Counter(name, description, labels or [])
        return self._metrics[name]

    def gauge(self, name: str, description: str, labels: Optional[list[str]] = None) -> Gauge:
        """ゲージを登録・取得"""
        if name not in self._metrics:
            self._metrics[name] = Gauge(name, description, labels or [])
        return self._metrics[name]

    def histogram(
        self,
        name: str,
        description: str,
        labels: Optional[list[str]] = None,
        buckets: Optional[list[float]] = None,
    ) -> Histogram:
        """ヒストグラムを登録・取得"""
        if name not in self._metrics:
            self._metrics[name] = Histogram(
                name, description, labels or [], buckets or list(DEFAULT_BUCKETS)
            )
        return self._metrics[name]

    def export_prometheus(self) -> str:
        """Prometheus形式でエクスポート"""
        lines = []

        for name, metric in self._metrics.items():
            lines.append(f"# HELP {name} {metric.description}")
            if isinstance(metric, Histogram):
                lines.append(f"# TYPE {name} histogram")
                for key, bucket_counts in metric._counts.items():
                    pairs = self._label_pairs(metric.labels, key)
                    cumulative = 0
                    for bucket, count in sorted(bucket_counts.items()):
                        cumulative += count
                        le = "+Inf" if bucket == float("inf") else str(bucket)
                        bucket_labels = "{" + ", ".join(pairs + [f'le="{le}"']) + "}"
                        lines.append(f"{name}_bucket{bucket_labels} {cumulative}")
                    label_str = self._format_labels(pairs)
                    lines.append(f"{name}_sum{label_str} {metric._sums.get(key, 0)}")
                    lines.append(f"{name}_count{label_str} {metric._totals.get(key, 0)}")
            else:
                kind = "counter" if isinstance(metric, Counter) else "gauge"
                lines.append(f"# TYPE {name} {kind}")
                for key, value in metric._values.items():
                    label_str = self._format_labels(self._label_pairs(metric.labels, key))
                    lines.append(f"{name}{label_str} {value}")

        return "\n".join(lines) + "\n"

    @staticmethod
    def _label_pairs(label_names: list[str], label_values: tuple) -> list[str]:
        return [f'{name}="{value}"' for name, value in zip(label_names, label_values)]

    @staticmethod
    def _format_labels(pairs: list[str]) -> str:
        """ラベルをPrometheus形式にフォーマット"""
        if not pairs:
            return ""
        return "{" + ", ".join(pairs) + "}"


# グローバルレジストリ
_registry: Optional[MetricsRegistry] = None


def get_metrics_registry() -> MetricsRegistry:
    """メトリクスレジストリのシングルトンを取得"""
    global _registry
    if _registry is None:
        _registry = MetricsRegistry()
    return _registry


# 定義済みメトリクス

def get_error_counter() -> Counter:
    """エラーカウンター"""
    return get_metrics_registry().counter(
        "errors_total",
        "Total number of errors",
        ["type", "code"]
    )


def get_container_operations() -> Counter:
    """コンテナ操作カウンター"""
    return get_metrics_registry().counter(
        "container_operations_total",
        "Total number of container engine operations",
        ["operation", "status"]
    )


def get_container_operation_duration() -> Histogram:
    """コンテナ操作の処理時間"""
    return get_metrics_registry().histogram(
        "container_operation_duration_seconds",
        "Container engine operation duration in seconds",
        ["operation"]
    )


def get_file_sync_records() -> Counter:
    """ファイル同期レコード処理結果カウンター"""
    return get_metrics_registry().counter(
        "file_sync_records_total",
        "Total number of file records processed",
        ["operation", "outcome"]
    )


def get_active_streams() -> Gauge:
    """アクティブなストリーム数"""
    return get_metrics_registry().gauge(
        "file_sync_active_streams",
        "Number of active file sync streams",
        ["operation"]
    )


@contextmanager
def measure_time(histogram: Histogram, **labels):
    """
    処理時間を計測するコンテキストマネージャー

    使用例:
        with measure_time(get_container_operation_duration(), operation="pull"):
            # 処理
            pass
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        histogram.observe(duration, **labels)
