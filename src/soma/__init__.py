"""soma: multi-provider LLM generation and audited quiz drafting.

- soma.llm: provider clients, schema translation, fallback chain
- soma.quiz: Maker -> Checker -> Finalizer quiz pipeline
"""
