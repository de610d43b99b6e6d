"""
Analytics and Monitoring

Tracks retrieval volume, latency, degraded (fallback-embedding) responses
and errors.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, List, Optional
import threading


# In-memory analytics store (per process)
class RetrievalAnalytics:
    def __init__(self):
        self.lock = threading.Lock()
        self.retrieval_count = 0
        self.error_count = 0
        self.degraded_count = 0
        self.empty_count = 0
        self.total_response_time_ms = 0
        self.retrievals_by_hour: Dict[str, int] = defaultdict(int)
        self.errors_by_type: Dict[str, int] = defaultdict(int)
        self.recent_retrievals: List[Dict] = []  # Last 100 retrievals

    def record_retrieval(
        self,
        query: str,
        response_time_ms: int,
        results_count: int,
        degraded: bool,
        success: bool = True,
        error: Optional[str] = None
    ):
        """Record a retrieval (search or tutoring turn)"""
        with self.lock:
            self.retrieval_count += 1
            self.total_response_time_ms += response_time_ms

            hour_key = datetime.now().strftime("%Y-%m-%d %H:00")
            self.retrievals_by_hour[hour_key] += 1

            if degraded:
                self.degraded_count += 1
            if success and results_count == 0:
                self.empty_count += 1

            if not success:
                self.error_count += 1
                if error:
                    error_type = error.split(":")[0] if ":" in error else "Unknown"
                    self.errors_by_type[error_type] += 1

            self.recent_retrievals.append({
                "query": query[:100],  # Truncate long queries
                "response_time_ms": response_time_ms,
                "results_count": results_count,
                "degraded": degraded,
                "timestamp": datetime.now().isoformat(),
                "success": success,
                "error": error
            })
            self.recent_retrievals = self.recent_retrievals[-100:]

    def get_stats(self) -> Dict:
        """Get analytics summary"""
        with self.lock:
            avg_response_time = (
                self.total_response_time_ms / self.retrieval_count
                if self.retrieval_count > 0 else 0
            )

            now = datetime.now()
            last_24h = sum(
                count for hour_key, count in self.retrievals_by_hour.items()
                if (now - datetime.strptime(hour_key, "%Y-%m-%d %H:00")) <= timedelta(hours=24)
            )

            return {
                "total_retrievals": self.retrieval_count,
                "total_errors": self.error_count,
                "degraded_retrievals": self.degraded_count,
                "empty_retrievals": self.empty_count,
                "success_rate": (
                    ((self.retrieval_count - self.error_count) / self.retrieval_count * 100)
                    if self.retrieval_count > 0 else 100.0
                ),
                "degraded_rate": (
                    (self.degraded_count / self.retrieval_count * 100)
                    if self.retrieval_count > 0 else 0.0
                ),
                "average_response_time_ms": round(avg_response_time, 2),
                "retrievals_last_24h": last_24h,
                "errors_by_type": dict(self.errors_by_type),
                "recent_retrievals": self.recent_retrievals[-10:],
            }

    def reset(self):
        """Reset all analytics"""
        with self.lock:
            self.retrieval_count = 0
            self.error_count = 0
            self.degraded_count = 0
            self.empty_count = 0
            self.total_response_time_ms = 0
            self.retrievals_by_hour.clear()
            self.errors_by_type.clear()
            self.recent_retrievals.clear()


# Global analytics instance
analytics = RetrievalAnalytics()
