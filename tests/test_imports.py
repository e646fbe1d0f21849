def test_imports():
    """
    @brief
    Verifies that all core allocprep modules are importable.

    @details
    Ensures package structure integrity and confirms that
    allocprep, allocprep.dataloader and allocprep.validator are accessible
    without import errors.
    """
    import allocprep
    import allocprep.dataloader.entity_loader
    import allocprep.export.bundle_export
    import allocprep.metrics.report_metrics
    import allocprep.parsers.fields
    import allocprep.rules.prioritization
    import allocprep.schemas.models
    import allocprep.validator

    # --- Assert ---
    # Confirm that modules were successfully imported and resolved
    assert allocprep.__version__
    assert hasattr(allocprep.validator, "ValidationEngine")
    assert all(
        [
            allocprep.dataloader.entity_loader,
            allocprep.export.bundle_export,
            allocprep.metrics.report_metrics,
            allocprep.parsers.fields,
            allocprep.rules.prioritization,
            allocprep.schemas.models,
        ]
    )
