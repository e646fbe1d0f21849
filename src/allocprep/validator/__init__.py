from allocprep.validator.engine import ValidationEngine, save_report, validate_entities

__all__ = ["ValidationEngine", "save_report", "validate_entities"]
