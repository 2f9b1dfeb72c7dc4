"""Service layer — resolution, validation, and materialization behind ServiceResult."""
