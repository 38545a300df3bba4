"""Generation prompt assembly."""

import json

from shared.models import Framework, Styling

from builder.schemas.build import GenerationBrief

FRAMEWORK_LABELS = {
    Framework.NEXTJS: "Next.js (App Router)",
    Framework.VITE_REACT: "Vite + React",
    Framework.HTML: "HTML/CSS/JS",
}

STYLING_LABELS = {
    Styling.TAILWIND: "Tailwind CSS",
    Styling.CSS: "CSS Modules",
    Styling.SCSS: "SCSS/Sass",
}

GENERATION_USER_PROMPT = (
    "Generate the complete project now. Output ALL files using the ===FILE: path=== "
    "format. No explanation outside of file markers. The project MUST compile and build "
    "successfully. Double-check every file for valid syntax, correct imports, and proper "
    "configuration before outputting it. IMPORTANT: All npm packages must use their LATEST "
    "versions that are compatible with React 19. Do NOT use outdated package versions. "
    "Include an .npmrc file with legacy-peer-deps=true."
)

NEXTJS_RULES = """
- Use Next.js 15 (latest stable). In package.json: "next": "^15.1.0", "react": "^19.0.0", "react-dom": "^19.0.0"
- Use Next.js App Router with server and client components
- Config file MUST be named next.config.mjs (ESM, NOT .ts and NOT .js)
- Every component that uses hooks, event handlers, or browser APIs MUST have "use client" at the top
- Do NOT import from "next/router"; use "next/navigation" instead
- For images, use next/image with width and height props, OR use regular <img> tags"""

VITE_RULES = """
- Use Vite 6 with React 19. In package.json: "vite": "^6.0.0", "react": "^19.0.0", "react-dom": "^19.0.0", "@vitejs/plugin-react": "^4.3.0"
- Config file: vite.config.{ext}"""

TAILWIND_NEXT_RULES = """
- Use Tailwind CSS v4. In package.json: "tailwindcss": "^4.0.0", "@tailwindcss/postcss": "^4.0.0"
- postcss.config.mjs should use @tailwindcss/postcss plugin
- In the global CSS file, use @import "tailwindcss" (NOT @tailwind directives)
- Do NOT create a tailwind.config.js/ts file; configure the theme with @theme { } blocks"""

DEPENDENCY_RULES = """
DEPENDENCY VERSION RULES (React 19 compatibility):
- ALL npm packages must be compatible with React 19. Use the LATEST versions of every library.
- lucide-react: use "^0.460.0" or later
- framer-motion: use "^12.0.0" or later
- react-hook-form: use "^7.54.0" or later
- Do NOT use any package version whose peer dependencies only allow React 16, 17 or 18
- Generate an .npmrc file with: legacy-peer-deps=true

CRITICAL BUILD RULES:
- Every JSX/TSX file must have valid syntax: no unclosed tags, no missing return statements
- Every import must reference a file/package that exists in the project
- package.json must include ALL dependencies used in source files
- tsconfig.json must have correct paths and compiler options for the chosen framework
- All config files must use the correct file extension and syntax for the framework version"""


def _config_files(framework: Framework, include_typescript: bool) -> str:
    if framework is Framework.NEXTJS:
        return "next.config.mjs, tsconfig.json, postcss.config.mjs"
    if framework is Framework.VITE_REACT:
        return f"vite.config.{'ts' if include_typescript else 'js'}, tsconfig.json"
    return "index.html"


def build_system_prompt(
    project_name: str,
    project_description: str | None,
    framework: Framework,
    styling: Styling,
    include_typescript: bool,
    brief: GenerationBrief,
) -> str:
    """Render the generation brief into the system prompt."""
    framework_label = FRAMEWORK_LABELS[framework]
    ext = "tsx" if include_typescript else "jsx"

    header = f"PROJECT: {project_name}"
    if project_description:
        header += f" ({project_description})"
    parts = [
        "You are an expert full-stack developer. Generate a complete, production-ready "
        f"{framework_label} project based on the following specification.\n\n{header}"
    ]

    if brief.features:
        lines = "\n".join(f"- {f.title}: {f.description}" for f in brief.features)
        parts.append(f"\nFEATURES:\n{lines}")

    if brief.flows:
        flows = []
        for flow in brief.flows:
            steps = "\n".join(
                f"  {i}. {step.title}: {step.description}" for i, step in enumerate(flow.steps, 1)
            )
            flows.append(f"Flow: {flow.title}\n{steps}")
        parts.append("\nUSER FLOWS:\n" + "\n\n".join(flows))

    if brief.pages:
        parts.append("\nPAGES:")
        for page in brief.pages:
            text = f"\nPAGE: {page.title}"
            if page.description:
                text += f"\nDescription: {page.description}"
            if page.contents:
                sections = "\n".join(f"  - {c.name}: {c.description}" for c in page.contents)
                text += f"\nContent sections:\n{sections}"
            parts.append(text)

    designed = [p for p in brief.pages if p.design_html]
    if designed:
        parts.append(
            f"\nDESIGNS:\nThe following HTML designs should be converted into {framework_label} "
            "components while preserving the visual design exactly:"
        )
        for page in designed:
            parts.append(f"\nPAGE: {page.title}\n```html\n{page.design_html}\n```")

    undesigned = [p.title for p in brief.pages if not p.design_html]
    if undesigned:
        parts.append(
            "\nPages without designs (create a clean, professional design for these): "
            + ", ".join(undesigned)
        )

    guide = brief.style_guide
    if guide and guide.html:
        text = "\nSTYLE GUIDE: Match the visual style of the style guide design across all pages."
        if guide.fonts:
            text += f"\nFonts: {json.dumps(guide.fonts)}"
        if guide.colors:
            text += f"\nColors: {json.dumps(guide.colors)}"
        parts.append(text)

    framework_rules = ""
    if framework is Framework.NEXTJS:
        framework_rules = NEXTJS_RULES
    elif framework is Framework.VITE_REACT:
        framework_rules = VITE_RULES.format(ext="ts" if include_typescript else "js")

    tailwind_rules = ""
    if styling is Styling.TAILWIND:
        tailwind_rules = (
            TAILWIND_NEXT_RULES
            if framework is Framework.NEXTJS
            else "\n- Configure Tailwind CSS properly with the project's color palette"
        )

    typescript_rule = (
        "\n- Add proper TypeScript types for all components and data" if include_typescript else ""
    )

    parts.append(
        f"""
TECH STACK:
- Framework: {framework_label}
- Styling: {STYLING_LABELS[styling]}
- TypeScript: {"Yes" if include_typescript else "No"}

REQUIREMENTS:
- Generate a complete project with proper file structure
- Convert all HTML designs into proper {framework_label} components
- Preserve the exact visual design from the HTML (colors, fonts, spacing, layout)
- Create proper routing/navigation between pages
- Include realistic placeholder data{typescript_rule}
- Include a README.md with setup instructions
- Include package.json with all required dependencies and correct version numbers
- The project MUST build successfully with "npm install && npm run build"
- Do NOT use deprecated APIs or outdated package versions{framework_rules}{tailwind_rules}
{DEPENDENCY_RULES}

OUTPUT FORMAT:
Return your response as a series of files. For each file, use this exact format:

===FILE: path/to/file.{ext}===
file content here
===END FILE===

Generate ALL files needed for a complete, runnable project. Include config files \
({_config_files(framework, include_typescript)}), package.json, README.md, and all source files."""
    )

    return "\n".join(parts)
