"""Send one sample hunk to the configured reviewer and print the findings."""

import asyncio

from diffreview.core.config import get_settings
from diffreview.prompts.review import ReviewPromptBuilder, get_prompt_template
from diffreview.services.github.models import PullRequestContext
from diffreview.services.llm import get_reviewer
from diffreview.services.review.diff_parser import DiffParser

SAMPLE_DIFF = """diff --git a/src/calculator.py b/src/calculator.py
--- a/src/calculator.py
+++ b/src/calculator.py
@@ -1,5 +1,10 @@
 def calculate_total(items):
-    total = 0
-    for item in items:
-        total += item
-    return total
+    if not items:
+        return 0
+    total = sum(items)
+    return total
+
+
+def calculate_average(items):
+    total = calculate_total(items)
+    return total / len(items)
"""


async def main() -> None:
    settings = get_settings()
    reviewer = get_reviewer(settings)
    builder = ReviewPromptBuilder(get_prompt_template(settings.review_profile))

    file_diff = DiffParser().parse(SAMPLE_DIFF)[0]
    pr = PullRequestContext(
        owner="local",
        repo="calculator",
        pull_number=0,
        title="Refactor calculator functions",
        description="Simplified calculate_total and added calculate_average",
    )
    prompt = builder.build(file_diff, file_diff.hunks[0], pr)

    print(f"Provider: {reviewer.name} ({reviewer.model})")
    print("Sending review request...")
    print("-" * 50)

    outcome = await reviewer.review(prompt)

    print(f"Status: {outcome.status.value}")
    if outcome.error:
        print(f"Error: {outcome.error}")
    for finding in outcome.findings:
        print(f"  Line {finding.line_number}:")
        print(f"    {finding.review_comment}")
        print()


if __name__ == "__main__":
    asyncio.run(main())
