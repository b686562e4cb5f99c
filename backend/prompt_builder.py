from llm_client import GenerationRequest
from normalizer import STEP_TYPES, exam_search_url

CAREER_SAMPLING = {"temperature": 0.7, "top_k": 40, "top_p": 0.95, "max_output_tokens": 4096}
EXAM_SAMPLING = {"temperature": 0.3, "top_k": 40, "top_p": 0.95, "max_output_tokens": 1024}

JOB_OUTLOOK_VALUES = ("High demand", "Growing field", "Moderate demand", "Competitive")
COMPETITIVENESS_VALUES = (
    "Highly competitive",
    "Moderately competitive",
    "Less competitive",
    "Very competitive",
)


def _quoted_options(values) -> str:
    quoted = [f'"{v}"' for v in values]
    return ", ".join(quoted[:-1]) + f", or {quoted[-1]}"


PATHWAY_SYSTEM_PROMPT = """You are a career and academic advisor at Miami Dade College (MDC) North Campus. Your task is to generate a comprehensive, holistic educational pathway for a student interested in a specific career.

PATHWAY STRUCTURE REQUIREMENTS:
The pathway must follow this structure and include ALL relevant steps:
1. START with an appropriate MDC program - Choose the BEST starting point from:
   * Associate of Science (A.S.) programs - for technical/vocational careers
   * Associate of Arts (A.A.) programs - for transfer-oriented careers
   * Certificate Programs - for quick entry into specific careers or as stepping stones
   * Bachelor's programs (B.S./B.A.) - when MDC offers a bachelor's degree that directly leads to the career
2. Include a TRANSFER step to a 4-year university (if the career requires a bachelor's degree and MDC doesn't offer one, or if transfer is the better pathway)
3. Include B.S./B.A. degree step (if required for the career and not already completed at MDC)
4. Include PROFESSIONAL EXPERIENCE/INTERNSHIP steps (required for licensure or professional development)
5. Include REQUIRED LICENSURE EXAMS/CERTIFICATIONS (e.g., FE/PE for engineers, A.R.E. for architects, NCLEX for nurses, etc.)
6. Include OPTIONAL advanced degrees (M.S., M.A., Ph.D.) when relevant

SPECIFIC REQUIREMENTS:

1. MDC PROGRAM SELECTION:
   - Use your knowledge of programs listed on MDC's official program pages:
     * Associate Programs: https://www.mdc.edu/academics/programs/associate.aspx (includes both A.A. and A.S.)
     * Bachelor Programs: https://www.mdc.edu/academics/programs/bachelor.aspx
     * Certificate Programs: https://www.mdc.edu/academics/programs/certificate.aspx
   - For ANY step with type 'degree', the 'name' field MUST contain the full, official program title, such as:
     * "Associate in Science in Nursing"
     * "Associate in Arts in Engineering - Mechanical"
     * "Certificate in [Program Name]"
     * "Bachelor of Science in [Program Name]"
     Do not use generic names.
   - If multiple MDC programs could lead to the same career, select the MOST DIRECT and EFFECTIVE pathway: the fastest route to employment, the best preparation for required licensure, and the best transfer opportunities if needed.

2. TRANSFER STEPS:
   - Include a transfer step ONLY if the career requires a bachelor's degree AND MDC doesn't offer a bachelor's program in that field, OR transfer to a specialized program (e.g., architecture, pharmacy) is required, OR transfer provides a better pathway than completing a bachelor's at MDC
   - If MDC offers a bachelor's degree that directly leads to the career, DO NOT include a transfer step
   - Mention articulation agreements and transfer to accredited institutions (e.g., FIU, UF, UCF)
   - Include GPA requirements, portfolio requirements (for design fields), or other admission prerequisites

3. PROFESSIONAL EXPERIENCE/INTERNSHIPS:
   - Include required professional experience programs (e.g., Architectural Experience Program (AXP) for architects, clinical rotations for healthcare)
   - Specify required hours when applicable (e.g., "3,740 hours of diverse professional experience")
   - Mention supervision requirements (e.g., "under the supervision of a licensed professional")

4. LICENSURE EXAMS AND CERTIFICATIONS:
   - Include ALL required licensure exams for the career (FE and PE for engineers, all A.R.E. divisions for architects, NCLEX-RN or NCLEX-PN for nurses)
   - Include any required certifications or continuing education requirements
   - Mark exams as "REQUIRED" in the description

5. ADVANCED DEGREES:
   - Include optional M.S., M.A., M.Arch, or Ph.D. degrees when relevant for career advancement
   - Clearly mark these as "(OPTIONAL)" in the level or description

6. PATHWAY FLOW:
   - Certificate (MDC) -> A.S./A.A. (MDC) -> Transfer -> B.S./B.A. -> Professional Experience -> Licensure Exams -> Optional Advanced Degrees
   - OR: A.S./A.A. (MDC) -> B.S./B.A. (MDC) -> Professional Experience -> Licensure Exams -> Optional Advanced Degrees
   - OR: Certificate (MDC) -> Direct Employment -> Optional Further Education
   - Each step should build upon the previous one, with a 1-2 sentence description of what it entails and why it's necessary

EXAMPLES:
- Mechanical Engineer: A.A. in Engineering - Mechanical (MDC) -> Transfer to 4-year university -> B.S. in Mechanical Engineering -> Professional Engineering Experience -> FE Exam -> PE Exam -> Optional M.S. in Mechanical Engineering
- Architect: A.A. in Architecture/Design (MDC) -> Transfer to architecture school -> B.Arch -> Architectural Experience Program (AXP) -> A.R.E. (all divisions) -> Optional M.Arch
- Nurse: A.S. in Nursing (MDC) -> B.S.N. (MDC, if available) OR Transfer -> B.S.N. -> Clinical Experience -> NCLEX-RN -> Optional M.S.N.
- IT Professional: Certificate in Information Technology (MDC) -> A.S. in Information Systems Technology (MDC) -> B.S. in Information Systems Technology (MDC) -> Professional Experience -> Optional Certifications
- Medical Assistant: Certificate in Medical Assisting (MDC) -> Direct Employment -> Optional A.S. in Health Sciences for advancement

You must only respond with a JSON object following the schema provided."""


def format_answers(answers: list[dict]) -> str:
    """Numbered question/answer block. List answers are joined with ', '."""
    lines = ["User's Career Assessment Answers:", ""]
    for index, item in enumerate(answers, start=1):
        question = str(item.get("question", "")).strip()
        answer = item.get("answer", "")
        if isinstance(answer, (list, tuple)):
            answer = ", ".join(str(a) for a in answer)
        lines.append(f"{index}. {question}")
        lines.append(f"   Answer: {answer}")
        lines.append("")
    return "\n".join(lines)


def build_assessment_request(answers: list[dict]) -> GenerationRequest:
    """Prompt for 6-10 career recommendations from quiz answers."""
    prompt = f"""You are an expert career counselor. Based on the following assessment answers, recommend 6-10 careers that best match this person's profile.

{format_answers(answers)}
For each recommended career, provide:
- "title": The exact job title (string)
- "description": A brief 1-2 sentence description of what they do (string)
- "salary": The median annual salary in USD, formatted like "$75,000 - $85,000" or "$100,000" (string)
- "jobOutlook": Job market outlook - one of: {_quoted_options(JOB_OUTLOOK_VALUES)} (string)
- "competitiveness": How competitive the field is - one of: {_quoted_options(COMPETITIVENESS_VALUES)} (string)
- "matchReason": A brief 1-2 sentence explanation of why this career matches their profile based on their answers (string)

Return ONLY a valid JSON array of objects. Each object must have these exact fields: "title", "description", "salary", "jobOutlook", "competitiveness", "matchReason".

Ensure the careers are diverse and cover different industries/roles that align with the user's responses. Prioritize careers that strongly match multiple aspects of their profile.

Return the JSON array now:"""
    return GenerationRequest(prompt=prompt, **CAREER_SAMPLING)


_SUGGESTION_EXAMPLES = """- If input is "software" (broad term):
[{"title": "Software Engineer", "description": "Designs and develops software applications and systems.", "salary": "$100,000 - $130,000", "jobOutlook": "High demand", "competitiveness": "Moderately competitive"}, {"title": "Full Stack Developer", "description": "Works on both front-end and back-end of web applications.", "salary": "$105,000 - $135,000", "jobOutlook": "High demand", "competitiveness": "Moderately competitive"}, {"title": "DevOps Engineer", "description": "Manages software development and IT operations processes.", "salary": "$110,000 - $140,000", "jobOutlook": "High demand", "competitiveness": "Moderately competitive"}]

- If input is "nurse" (broad term):
[{"title": "Registered Nurse", "description": "Provides patient care, administers medications, and coordinates with healthcare teams.", "salary": "$75,000 - $85,000", "jobOutlook": "High demand", "competitiveness": "Less competitive"}, {"title": "Nurse Practitioner", "description": "Advanced practice registered nurse who provides primary and specialty healthcare services.", "salary": "$110,000 - $125,000", "jobOutlook": "High demand", "competitiveness": "Moderately competitive"}, {"title": "Certified Nurse-Midwife (CNM)", "description": "Advanced practice nurse specializing in pregnancy, childbirth, and postpartum care.", "salary": "$115,000 - $130,000", "jobOutlook": "Growing field", "competitiveness": "Moderately competitive"}]

- If input is "mechanic" (broad term):
[{"title": "Automotive Service Technician and Mechanic", "description": "Diagnoses, repairs, and maintains cars and light trucks.", "salary": "$47,000 - $55,000", "jobOutlook": "Moderate demand", "competitiveness": "Less competitive"}, {"title": "Aircraft Mechanic", "description": "Maintains and repairs aircraft to ensure safe flight operations.", "salary": "$65,000 - $75,000", "jobOutlook": "Growing field", "competitiveness": "Moderately competitive"}, {"title": "Diesel Service Technician and Mechanic", "description": "Repairs and maintains diesel engines in trucks, buses, and other heavy vehicles.", "salary": "$58,000 - $65,000", "jobOutlook": "Moderate demand", "competitiveness": "Less competitive"}]"""


def build_suggestions_request(text: str) -> GenerationRequest:
    """Prompt for 3-6 careers matching a (possibly partial) career interest."""
    interest = text.strip()
    prompt = f"""You are a career advisor. A user has entered "{interest}" as a career interest.

IMPORTANT: Always return career suggestions. Only return an empty array [] if the input is completely nonsensical (like "banana123" or "xyzabc").

Your task is to:
1. If "{interest}" is a broad career category (like "software", "nurse", "mechanic", "engineer", "teacher", "doctor", "lawyer"), identify 3-6 specific career titles within that category.
2. If "{interest}" is itself a specific, recognized job title/career, include it as the FIRST item, then add 2-5 related careers.
3. For ANY career-related term (broad, specific, or partial), ALWAYS return 3-6 careers. Never return empty unless the input is completely unrelated to any real career.

Return ONLY a valid JSON array. Each object must have these exact fields: "title", "description", "salary", "jobOutlook", "competitiveness". Return 3-6 items.

Field formats:
- "title": Exact job title (string)
- "description": 1-2 sentence description (string)
- "salary": Salary range like "$75,000 - $85,000" (string)
- "jobOutlook": {_quoted_options(JOB_OUTLOOK_VALUES)} (string)
- "competitiveness": {_quoted_options(COMPETITIVENESS_VALUES)} (string)

Examples:
{_SUGGESTION_EXAMPLES}

Input: "{interest}"
Return the JSON array (never empty unless input is completely nonsensical):"""
    return GenerationRequest(prompt=prompt, **CAREER_SAMPLING)


def pathway_schema(career: str) -> dict:
    """Structured-output schema (Gemini OpenAPI subset) for a Pathway."""
    return {
        "type": "OBJECT",
        "properties": {
            "title": {
                "type": "STRING",
                "description": f"Pathway to becoming a {career}",
            },
            "steps": {
                "type": "ARRAY",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "type": {"type": "STRING", "enum": list(STEP_TYPES)},
                        "level": {
                            "type": "STRING",
                            "description": "e.g., A.A. (MDC), B.S., M.S. (Optional), or type of step",
                        },
                        "name": {
                            "type": "STRING",
                            "description": "Name of the degree, exam, or step",
                        },
                        "description": {
                            "type": "STRING",
                            "description": "A 1-2 sentence description of this step.",
                        },
                    },
                    "required": ["type", "level", "name", "description"],
                },
            },
        },
        "required": ["title", "steps"],
    }


def build_pathway_request(career: str) -> GenerationRequest:
    """System instruction + user query + response schema for one career."""
    career = career.strip()
    prompt = f"""Generate a comprehensive educational pathway for becoming a "{career}".

The pathway must include:
- The BEST starting point from MDC: Associate of Science (A.S.), Associate of Arts (A.A.), Certificate Program, or Bachelor's Program (when MDC offers one)
- Transfer to a 4-year university (ONLY if bachelor's degree is required AND MDC doesn't offer a bachelor's program in that field)
- Bachelor's degree (if required - prefer MDC's bachelor's program if available)
- Required professional experience/internships
- All required licensure exams and certifications
- Optional advanced degrees (M.S., Ph.D.) when relevant

Consider all MDC program types (A.S., A.A., Certificates, and Bachelor's) and select the most direct and effective pathway. When MDC offers a bachelor's degree that directly leads to the career, use it instead of transfer."""
    return GenerationRequest(
        prompt=prompt,
        system_instruction=PATHWAY_SYSTEM_PROMPT,
        response_schema=pathway_schema(career),
    )


def build_exam_info_request(exam_name: str) -> GenerationRequest:
    """Prompt for an exam's official URL and its requirements."""
    exam_name = exam_name.strip()
    prompt = f"""You are a helpful assistant that finds official information about professional exams and certifications.

For the exam/certification: "{exam_name}"

Please provide:
1. The official website URL for this exam/certification (the first/main official website where candidates can register or learn about the exam)
2. A list of specific requirements needed to take this exam/certification

Format your response as JSON with this structure:
{{
  "url": "https://official-website-url.com",
  "requirements": [
    "Requirement 1",
    "Requirement 2",
    "Requirement 3"
  ]
}}

Important:
- Only provide the official website URL (not a search engine link)
- Requirements should be specific and actionable (e.g., "Bachelor's degree in engineering", "Pass the FE exam", "Complete 3,740 hours of experience")
- Include education prerequisites, application steps, exam format, experience requirements, etc.
- If you cannot find the official website, use a Google search URL: "{exam_search_url(exam_name)}"
- Provide at least 3-5 requirements if available

Respond ONLY with valid JSON, no additional text."""
    return GenerationRequest(prompt=prompt, **EXAM_SAMPLING)
