"""
Fraud-detection training sandbox.

This package synthesizes labelled banking transactions with overlapping
fraud and legitimate distributions, explores them, trains several neural
classifier architectures and scores new transactions with the best one.

Modules:
    transaction_synthesis:  Transaction record and TransactionSynthesizer
    label_noise:            NoiseInjector for simulated annotation error
    feature_normalization:  FeatureNormalizer with write-once min-max parameters
    exploratory_analysis:   AnalyticsEngine for statistics, fraud rates and insights
    classifiers:            Architecture registry and the torch classifier adapter
    model_orchestration:    ModelOrchestrator for sequential training and selection
    model_evaluation:       ModelEvaluator for held-out classification metrics
    inference:              InferenceService for single-transaction scoring
    dataset_export:         CSV export with a fixed column order
    session:                SandboxSession tying the workflow together
    config:                 SandboxConfig and YAML loading

Example:
    from fraud_sandbox.session import SandboxSession
    from fraud_sandbox.config import SandboxConfig

    session = SandboxSession(SandboxConfig(seed=42))
    session.generate_data(1000)
    session.train_models(["shallow"])
"""

__version__ = "0.1.0"
