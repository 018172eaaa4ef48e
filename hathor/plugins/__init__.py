"""Built-in plugins registered ahead of configured plugins.

``files`` serves the web root; ``views`` renders Jinja2 templates.
"""
