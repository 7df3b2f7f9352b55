"""
lsf-exercises: adaptive exercise generation for French Sign Language (LSF).

Data flow:
    request -> GeneratorFactory picks a generator -> generator pulls concepts
    from a ConceptProvider -> a GenerationStrategy builds the content ->
    DifficultyAdapter tunes it -> ExerciseCache stores it -> the strategy
    scores responses -> LearnerSessionManager folds scores into metrics.
"""

__version__ = "1.0.0"
