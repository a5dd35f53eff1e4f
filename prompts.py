ANALYSIS_PROMPT = """
Analyze this samosa image and provide:
1. A score out of 100 based on its visual appearance
2. Analysis of its three corners in degrees (estimate)
3. A brief comment about each corner's crispiness
Format the response as a JSON object with score, corners array (each with name, angle, and comment).
Example format: {"score": 85, "corners": [{"name": "Top", "angle": 60, "comment": "Crispy"}]}
"""

PROGRESS_CAPTIONS = (
    "Analyzing samosa geometry...",
    "Evaluating crispiness patterns...",
    "Consulting with AI food experts...",
)
