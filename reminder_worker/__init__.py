from .sweep import run_sweep, SweepReport
from .materializer import materialize_today, materialize_all
from .dispatcher import dispatch_due
from .recurrence import is_due_today, today_slot
