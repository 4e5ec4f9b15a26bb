from app.services.compliance import (
    CheckPipeline,
    get_check_pipeline,
    reset_check_pipeline,
)

__all__ = [
    # Compliance pipeline
    "CheckPipeline",
    "get_check_pipeline",
    "reset_check_pipeline",
]
