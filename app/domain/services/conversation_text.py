MAIN_MENU = (
    "Welcome to Immigration Help 👋\n"
    "Please choose an option by typing the number:\n\n"
    "1️⃣ Canada PR\n"
    "2️⃣ Student Visa\n"
    "3️⃣ Work Permit\n"
    "4️⃣ Tourist Visa\n"
    "5️⃣ Business / Startup Visa\n"
    "6️⃣ Eligibility Check\n"
    "7️⃣ Talk to an Expert (Human Support)\n\n"
    "Type *menu* anytime to see this menu again.\n"
    "Type *restart* to restart the conversation."
)

TEXT = {
    "GREETING": "Hello {name}! 👋\n\n" + MAIN_MENU,
    "MAIN_MENU": MAIN_MENU,
    "NOT_UNDERSTOOD": "I didn't understand.\n\n" + MAIN_MENU,
    "RESTARTED": "Conversation restarted.\n\n" + MAIN_MENU,
    "FLOW_FINISHED": "✅ Your request is complete. Anything else?\n\n" + MAIN_MENU,

    # Personal details questions, keyed by field
    "ASK_NAME": "Please share your *full name*:",
    "ASK_PHONE": "Send your *phone number* with country code:",
    "ASK_EMAIL": "Enter your *email address* (or type N/A):",
    "ASK_AGE": "What is your *age*?",
    "ASK_CITY": "Which *city* are you in?",
    "ASK_COUNTRY": "Which *country* are you living in?",
    "ASK_EDUCATION": "Your *highest education*?",
    "ASK_EXPERIENCE": "Your *work experience* (in years)?",

    # Validation corrections
    "INVALID_PHONE": "Invalid phone. Send again with country code.",
    "INVALID_EMAIL": "Invalid email. Send again or type N/A.",
    "INVALID_NUMBER": "Please send a valid number for {field}.",
    "EMPTY_FIELD": "Please enter your {field}.",

    "PERSONAL_SUMMARY": (
        "📋 *Your details*\n"
        "Name: {name}\n"
        "Phone: {phone}\n"
        "Email: {email}\n"
        "Age: {age}\n"
        "City: {city}\n"
        "Country: {country}\n"
        "Education: {education}\n"
        "Experience: {experience} years"
    ),

    # Flow-specific content
    "VISA_ACK": (
        "✅ Thank you! Your *{service}* enquiry has been recorded.\n"
        "Our team will review your profile and get back to you shortly.\n\n"
        "Type *menu* to explore other services."
    ),
    "ELIGIBILITY_RESULT": (
        "🎯 *Eligibility result*: {result}\n"
        "Score: {score}/9"
    ),
    "ASK_LANGUAGE_SCORE": (
        "Have you taken IELTS (or a similar English test)?\n"
        "Send your overall band score (0-9) to refine this result, or type *skip*."
    ),
    "INVALID_LANGUAGE_SCORE": "Please send a band score between 0 and 9, or type *skip*.",
    "HANDOFF_ACK": (
        "🙋 Thank you! An immigration expert will contact you shortly.\n\n"
        "Type *menu* to go back to the main menu."
    ),
    "ADMIN_HANDOFF_ALERT": (
        "🔔 New expert request from {sender} ({chat_id})\n\n{summary}"
    ),
}

SERVICE_LABELS = {
    "CANADA_PR": "Canada PR",
    "STUDENT_VISA": "Student Visa",
    "WORK_PERMIT": "Work Permit",
    "TOURIST_VISA": "Tourist Visa",
    "BUSINESS_VISA": "Business / Startup Visa",
    "ELIGIBILITY": "Eligibility Check",
    "HANDOFF": "Talk to an Expert",
}


def t(key: str, **kwargs) -> str:
    text = TEXT[key]
    return text.format(**kwargs) if kwargs else text
