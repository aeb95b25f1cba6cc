"""
Solo Hunter - геймифицированный трекер задач

Квесты, опыт, уровни и ранги, серии выполнения, архив заметок и календарь.
"""

__version__ = "1.0.0"
