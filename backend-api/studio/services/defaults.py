"""
Bundled site content

Used when the remote store has no value for a field or is unreachable and no
local cache snapshot exists. Each call builds fresh objects so callers may
mutate what they get.
"""

from typing import List

from studio.schemas.site import SiteConfig, Testimonial


def _default_projects() -> List[dict]:
    return [
        {"id": "1", "title": "NeoBank App", "category": "Web Development",
         "thumbnail": "https://picsum.photos/600/400?random=1", "description": "Financial tech platform."},
        {"id": "2", "title": "Urban Bloom Branding", "category": "Graphic Design",
         "thumbnail": "https://picsum.photos/600/400?random=2", "description": "Visual identity for floral boutique."},
        {"id": "3", "title": "Fitness Tracker", "category": "Web Development",
         "thumbnail": "https://picsum.photos/600/400?random=3", "description": "Health monitoring dashboard."},
        {"id": "4", "title": "E-Commerce Visuals", "category": "Graphic Design",
         "thumbnail": "https://picsum.photos/600/400?random=4", "description": "Product marketing assets."},
        {"id": "5", "title": "Crypto Dashboard", "category": "Web Development",
         "thumbnail": "https://picsum.photos/600/400?random=5", "description": "Live crypto trading UI."},
        {"id": "6", "title": "Organic Juice Packaging", "category": "Graphic Design",
         "thumbnail": "https://picsum.photos/600/400?random=6", "description": "Sustainable packaging design."},
    ]


def _default_services() -> List[dict]:
    return [
        {"id": "s1", "title": "Brand Identity", "icon": "🎨",
         "description": "Logos, colour systems and guidelines that make a brand recognisable.",
         "items": ["Logo Design", "Brand Guidelines", "Stationery"]},
        {"id": "s2", "title": "Graphic Design", "icon": "🖌️",
         "description": "Print and social visuals built around your message.",
         "items": ["Flyers & Posters", "Social Media Kits", "Packaging"]},
        {"id": "s3", "title": "Web Development", "icon": "💻",
         "description": "Fast, responsive websites and web apps.",
         "items": ["Landing Pages", "Business Websites", "Web Apps"]},
        {"id": "s4", "title": "UI/UX Design", "icon": "📱",
         "description": "Interfaces that are clear to use and pleasant to look at.",
         "items": ["Wireframes", "Prototypes", "Design Systems"]},
    ]


def _default_skills() -> List[dict]:
    return [
        {"name": "Branding", "level": 90, "category": "Design"},
        {"name": "Logo Design", "level": 95, "category": "Design"},
        {"name": "Illustration", "level": 80, "category": "Design"},
        {"name": "Print Design", "level": 85, "category": "Design"},
        {"name": "HTML/CSS", "level": 95, "category": "Development"},
        {"name": "JavaScript", "level": 85, "category": "Development"},
        {"name": "Node.js", "level": 75, "category": "Development"},
        {"name": "PHP", "level": 80, "category": "Development"},
        {"name": "Git/GitHub", "level": 85, "category": "Development"},
    ]


def _default_faqs() -> List[dict]:
    return [
        {"question": "What services do you offer?",
         "answer": "We provide comprehensive graphic design, full brand identity development, and end-to-end web development using modern stacks like React, Node.js, and PHP."},
        {"question": "Do you work with clients outside Nigeria?",
         "answer": "Absolutely! We work with clients globally using video conferencing and collaborative tools like Slack, Figma, and GitHub."},
        {"question": "How long does a project take?",
         "answer": "Timelines depend on the project's complexity. A logo or flyer might take 3 days, while a full-scale web application can take 2-4 weeks."},
        {"question": "Do you offer revisions?",
         "answer": "Yes, revisions are a core part of our process. Each pricing plan includes a specific number of rounds to ensure you are 100% satisfied."},
        {"question": "What tools do you use?",
         "answer": "For design, we use Figma, Photoshop, and Illustrator. For development, we leverage HTML5, Tailwind CSS, JavaScript, React, and various backend technologies."},
        {"question": "How can I start?",
         "answer": "The easiest way is to use the contact form below or send us an email directly at linostudiong@gmail.com."},
    ]


def _default_plans() -> List[dict]:
    return [
        {"name": "Starter", "price": "$299",
         "features": ["Basic design or landing page", "Quick turnaround (3-5 days)", "Email support", "1 Revision included"]},
        {"name": "Professional", "price": "$799", "highlighted": True,
         "features": ["Full branding or website", "Responsive modern design", "3 Revisions included", "Basic SEO optimization", "Priority support"]},
        {"name": "Premium", "price": "$1,499",
         "features": ["Full brand + web solution", "E-commerce or custom dashboard", "Ongoing technical support", "Advanced SEO & performance", "Unlimited revisions"]},
    ]


def default_site_config() -> SiteConfig:
    """Compiled-in site configuration"""
    return SiteConfig.model_validate({
        "siteName": "Lino Studio NG",
        "tagline": "Designing Identity. Building Reality.",
        "heroHeadline": "Design That Speaks. Code That Works.",
        "heroSubtext": "I help brands stand out visually and function flawlessly online through modern graphic design and high-performance web development.",
        "contactEmail": "linostudiong@gmail.com",
        "contactPhone": "+234 XXX XXX XXXX",
        "location": "Yenagoa, Bayelsa State, Nigeria",
        "instagramUrl": "",
        "linkedInUrl": "",
        "theme": "light",
        "couponPrefix": "LINO-",
        "seo": {
            "metaTitle": "Lino Studio NG | Graphic Design & Web Development",
            "metaDescription": "Brand identity, graphic design and web development studio based in Nigeria.",
            "keywords": "graphic design, branding, web development, Nigeria",
        },
        "projects": _default_projects(),
        "services": _default_services(),
        "skills": _default_skills(),
        "faqs": _default_faqs(),
        "plans": _default_plans(),
    })


def default_testimonials() -> List[Testimonial]:
    """Static, not admin-editable"""
    return [
        Testimonial(id="1", author="Samuel Peterson", role="CEO, TechFlow Nigeria",
                    quote="Lino Studio NG delivered beyond expectations. Clean design, fast delivery, and excellent communication throughout the process."),
        Testimonial(id="2", author="Adaobi Okafor", role="Marketing Lead, Urban Bloom",
                    quote="Professional, creative, and reliable. They understood our brand vision perfectly and translated it into a stunning digital presence."),
        Testimonial(id="3", author="Johnathan Smith", role="Founder, Zenith Hub",
                    quote="The web application they built for us is not only visually beautiful but performs flawlessly. Truly a top-tier studio."),
    ]
