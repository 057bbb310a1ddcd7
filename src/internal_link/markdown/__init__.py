"""
Markdown text processing package.

- front_matter: Leading metadata block detection
- analyzers: Word tokenizer and filters (punctuation, case, stop words)
- tokenizer: Term frequencies and positioned n-gram occurrences
- snippet: Context windows around occurrences
- links: Link insertion into document bytes
"""
