"""
Party meetings: жизненный цикл сессий встреч учебных групп и reconciliation с провайдером.
"""

__version__ = "0.1.0"
