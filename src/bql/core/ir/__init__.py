"""
BQL intermediate representation.

- nodes: the immutable AST produced by the parser
- objects: runtime values and environments used by the evaluator
"""
