from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

# 스케줄 필드별 허용 범위 (dayOfWeek 는 0=일요일)
_FIELD_RANGES: dict[str, tuple[int, int]] = {
    "second": (0, 59),
    "minute": (0, 59),
    "hour": (0, 23),
    "date": (1, 31),
    "month": (1, 12),
    "dayOfWeek": (0, 6),
}

# 윤년 2월 29일까지 도달 가능한 최대 탐색 일수
_MAX_SEARCH_DAYS = 366 * 8


@dataclass(frozen=True)
class ScheduleSpec:
    """
    cron 형태의 실행 주기.

    지정하지 않은 필드는 모든 값과 일치하며, second 만 기본값 0 을 사용합니다.
    """
    second: int | None = None
    minute: int | None = None
    hour: int | None = None
    date: int | None = None
    month: int | None = None
    day_of_week: int | None = None

    @classmethod
    def parse(cls, value: str | None) -> "ScheduleSpec":
        """'minute:30,hour:9,dayOfWeek:1' 형식의 문자열을 파싱합니다."""
        if not value or not value.strip():
            raise ValueError("스케줄 값이 비어 있습니다 (SCHEDULE_DATE)")

        fields: dict[str, int] = {}
        for part in value.split(","):
            part = part.strip()
            if not part:
                continue
            name, sep, raw = part.partition(":")
            name = name.strip()
            if not sep or name not in _FIELD_RANGES:
                raise ValueError(
                    f"잘못된 스케줄 항목: '{part}'. 사용 가능: {list(_FIELD_RANGES)}"
                )
            try:
                number = int(raw.strip())
            except ValueError:
                raise ValueError(f"스케줄 값이 숫자가 아닙니다: '{part}'") from None
            low, high = _FIELD_RANGES[name]
            if not low <= number <= high:
                raise ValueError(f"스케줄 값 범위 초과: '{part}' (허용 {low}~{high})")
            fields[name] = number

        if not fields:
            raise ValueError(f"스케줄 값이 비어 있습니다: '{value}'")

        return cls(
            second=fields.get("second"),
            minute=fields.get("minute"),
            hour=fields.get("hour"),
            date=fields.get("date"),
            month=fields.get("month"),
            day_of_week=fields.get("dayOfWeek"),
        )

    def describe(self) -> str:
        names = ("second", "minute", "hour", "date", "month", "dayOfWeek")
        values = (self.second, self.minute, self.hour, self.date, self.month, self.day_of_week)
        return ",".join(f"{n}:{v}" for n, v in zip(names, values) if v is not None)

    def _matches_day(self, day: date) -> bool:
        if self.date is not None and day.day != self.date:
            return False
        if self.month is not None and day.month != self.month:
            return False
        if self.day_of_week is not None and (day.weekday() + 1) % 7 != self.day_of_week:
            return False
        return True

    def _times_of_day(self) -> list[time]:
        hours = [self.hour] if self.hour is not None else range(24)
        minutes = [self.minute] if self.minute is not None else range(60)
        second = self.second if self.second is not None else 0
        return [time(h, m, second) for h in hours for m in minutes]

    def next_fire_after(self, after: datetime) -> datetime:
        """after 이후(초과) 처음으로 일치하는 시각을 반환합니다."""
        times = self._times_of_day()
        day = after.date()
        for _ in range(_MAX_SEARCH_DAYS):
            if self._matches_day(day):
                for t in times:
                    candidate = datetime.combine(day, t, tzinfo=after.tzinfo)
                    if candidate > after:
                        return candidate
            day += timedelta(days=1)
        raise ValueError(f"도달할 수 없는 스케줄입니다: {self.describe()}")
