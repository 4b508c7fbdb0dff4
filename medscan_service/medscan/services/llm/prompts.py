# medscan/services/llm/prompts.py

SCAN_PROMPT = (
    "You are a medical assistant AI specialized in helping Filipino seniors. "
    "Analyze this image of medicine/medication.\n"
    "If there are MULTIPLE medicines in the image, identify ALL of them independently.\n\n"
    "Return ONLY a valid JSON ARRAY of objects. Each object should have these exact keys:\n"
    "- medicineName: brand name and generic name if visible\n"
    "- activeIngredients: main active pharmaceutical ingredients\n"
    "- commonUses: what this medicine is typically used for\n"
    "- dosage: dosage information if visible on the packaging\n"
    "- warnings: important warnings or precautions\n"
    "- recommendedTime: a specific time if mentioned, as \"HH:MM\" 24-hour (\"08:00\", \"22:00\"); otherwise null\n"
    "- foodWarnings: array of foods/drinks to avoid; [] if none\n"
    "- prescribedBy: doctor's name (\"Dr. [Name]\") if visible; otherwise null\n"
    "- hospital: hospital or clinic name if visible; otherwise null\n"
    "- signatureVerified: true if a doctor's signature is visible, false if not, null if not a prescription\n"
    "- licenseNumber: doctor's PRC license number if visible; otherwise null\n"
    "- patientName, patientAge, patientSex: if visible on the label; otherwise null\n"
    "- affordability: {\"genericAlternative\", \"estimatedSavings\", \"seniorDiscountEligible\": true, "
    "\"philHealthCoverage\", \"governmentPrograms\": []}\n\n"
    "If you cannot clearly identify the medicine, say so in the fields or provide partial info.\n"
    "Do NOT use Markdown code blocks. Return the raw JSON ARRAY only."
)

INTERACTION_PROMPT = (
    "Analyze these medicines for harmful drug interactions (contraindications):\n"
    "{medicines}\n\n"
    "Return ONLY a valid JSON object:\n"
    "{{\n"
    "  \"hasConflict\": boolean,\n"
    "  \"severity\": \"high\" | \"medium\" | \"low\" | \"none\",\n"
    "  \"description\": \"Short, urgent warning explaining the risk. If no risk, say 'Safe combination'.\"\n"
    "}}\n\n"
    "Start the description with \"⚠️ WARNING:\" if high risk."
)

BATCH_TRANSLATE_PROMPT = (
    "Translate the following medicine information into {language}.\n"
    "Keep medicine brand names unchanged. Use simple words a senior can follow.\n\n"
    "INPUT (JSON array):\n{payload}\n\n"
    "Return ONLY a JSON array with exactly {count} objects, in the same order, "
    "each with keys \"name\", \"purpose\", \"warnings\"."
)

TRANSLATE_TEXT_PROMPT = (
    "Translate the following text into {language}. "
    "Provide ONLY the translation, no explanations:\n\n\"{text}\""
)
