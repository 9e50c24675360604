# Views package init
"""
ScoreSnap Web — Server-Rendered Views
======================================

What:  The layout shell every HTML page is rendered inside, plus its
       Jinja2 templates (templates/).
Why:   Pages share one frame: document metadata, the auth-gated navigation
       header, the notification region and the serialized query state.
"""
