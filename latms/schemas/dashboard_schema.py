from pydantic import BaseModel


class SummaryMetrics(BaseModel):
    employees: int = 0
    leaves: dict[str, int] = {}
    tickets: dict[str, int] = {}
    on_leave_today: int = 0
