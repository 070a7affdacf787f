"""
Third-party service adapters: Gmail (mail source, trash, send) and Groq (chat completions).
"""
