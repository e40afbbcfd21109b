"""
medi_assist: schema-validated AI flows for a medical assistant.

This package provides flow units, prompt templates, tool bridging,
sequential orchestration, and a direct fallback transport to the model.
"""
