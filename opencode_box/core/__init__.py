"""Pure launch stages: sanitization, mode resolution, host discovery."""
