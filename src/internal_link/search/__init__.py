"""
Ranking package.

- models: Documents, occurrences and link suggestions
- stats: IDF and BM25 weight helpers
- scorer: Scorer protocol and the BM25 implementation
"""
