from diffreview.prompts.review import (
    PromptTemplate,
    ReviewPromptBuilder,
    build_review_prompt,
    get_prompt_template,
)

__all__ = ["PromptTemplate", "ReviewPromptBuilder", "build_review_prompt", "get_prompt_template"]
