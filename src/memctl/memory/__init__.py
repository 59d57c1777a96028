"""Conversation memory kept in a flat text file.

Files:
    memory/prompt.txt           # base prompt, last line is the latest user input
    memory/memory.txt           # retained conversation lines, trimmed every run
    memory/memory.txt.backup    # snapshot taken before trimming
"""
