from app.workers.tasks.maintenance import run_zombie_sweep

__all__ = ["run_zombie_sweep"]
