from datetime import datetime


class SystemClock:
    """Local wall-clock time. The quota tracker reads time only through this."""

    def now(self) -> datetime:
        return datetime.now()

    def now_ms(self) -> int:
        return int(self.now().timestamp() * 1000)
