"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Named constants, endpoint names, upstream URL templates
- exceptions: Custom exception hierarchy
- responses: CORS headers and the JSON response envelope
"""
