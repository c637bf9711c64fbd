"""Audio Convert API - Core application modules.

Provides:
- Target format policy and ffmpeg directives
- Upload staging and transcode invocation
- Error taxonomy, response schemas and configuration
"""

__version__ = "0.1.0"
