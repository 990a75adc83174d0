"""
Training pipeline for the activity classifier.

Contains modules for the fit/hold-out split, randomized hyperparameter search,
final training, and model evaluation.
"""
