"""
Cat adoption post mediator.

Provides:
- An access-gated, rate-limited HTTP endpoint in front of the OpenAI Responses API
- A prompt builder for cat adoption profiles
- A cascade parser turning free-form model replies into a title/body pair
- A local CLI for running a profile straight through the upstream model
"""
