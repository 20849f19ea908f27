"""
Scribe: a streaming AI writing assistant for Stream Chat channels.

- core.agent: agent lifecycle (initialize / dispose)
- core.turn_controller: one inbound-message turn, end to end
- llm: streaming completions with throttled partial updates
- tools.web_search: search heuristic and Tavily client
- session.transcript: bounded conversation memory
"""

__version__ = "0.1.0"
