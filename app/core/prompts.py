"""
Centralized AI Prompt Repository
- Keeps extraction and job search instructions in one place
- Decouples prompts from service logic
"""

# --- RESUME EXTRACTION ---
RESUME_EXTRACTION_INSTRUCTION = (
    "Analyze this resume for a candidate seeking a job in {locale}. "
    "Extract key information and provide feedback. "
    "Respond in JSON format according to the provided schema."
)

# --- JOB SEARCH ---
JOB_SEARCH_TEMPLATE = (
    'Find 5-10 recent job openings in {locale} for the following roles: "{titles}". '
    "Use web search to find relevant results from job boards like LinkedIn, Naukri, Indeed "
    "or official company career pages. For each job, provide a detailed entry. "
    "The final output should be a plain text response containing a markdown code block with "
    "a JSON array of job objects. Each object should include: "
    '"title" (string), "company" (string), "location" (string), '
    '"match_percentage" (number, your best estimate 0-100), '
    '"apply_url" (string, a direct link), "description" (string, 1-2 sentences), '
    '"salary_range" (string), "experience_required" (string, e.g., \'2+ years\'), '
    "and \"job_type\" (string, e.g., 'Full-time'). "
    "Do not include any text outside of the JSON markdown block."
)

JSON_REPAIR_TEMPLATE = (
    "The following text is supposed to be a JSON array of objects but is invalid. "
    "Please fix it and return only the valid JSON array. Do not add any commentary.\n\n{text}"
)

# helper to build prompts
def get_prompt(template: str, **kwargs) -> str:
    return template.format(**kwargs)
