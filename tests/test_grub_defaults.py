from unittest import TestCase, main

from hibersetup.boot.grub import set_resume_param
from hibersetup.boot.grub_defaults import GrubAssignment, GrubDefaults
from zenlib.logging import loggify

from fake_host import GRUB_DEFAULTS

CMDLINE_VAR = "GRUB_CMDLINE_LINUX_DEFAULT"


@loggify
class TestGrubDefaults(TestCase):
    def test_unchanged_text(self):
        """Parsing then printing a file without changes returns the same text."""
        self.assertEqual(str(GrubDefaults(GRUB_DEFAULTS)), GRUB_DEFAULTS)
        self.assertEqual(str(GrubDefaults("GRUB_TIMEOUT=5")), "GRUB_TIMEOUT=5")

    def test_parse_assignment(self):
        assignment = GrubAssignment.from_line('export GRUB_CMDLINE_LINUX_DEFAULT="quiet  splash" # comment')
        self.assertEqual(assignment.name, CMDLINE_VAR)
        self.assertEqual(assignment.tokens, ["quiet", "splash"])
        self.assertEqual(assignment.quote, '"')
        self.assertEqual(assignment.export, "export ")
        self.assertEqual(assignment.trailer, " # comment")

    def test_not_assignments(self):
        """Comments and other shell lines are not parsed as assignments."""
        for line in ["#GRUB_TERMINAL=console", "", "   ", "if [ -f foo ]; then", "GRUB BAD=1"]:
            self.assertIsNone(GrubAssignment.from_line(line))

    def test_set_resume(self):
        grub_defaults = GrubDefaults(GRUB_DEFAULTS)
        self.assertEqual(set_resume_param(grub_defaults, CMDLINE_VAR, "1234-ABCD"), [])
        self.assertIn('GRUB_CMDLINE_LINUX_DEFAULT="quiet splash resume=UUID=1234-ABCD"\n', str(grub_defaults))

    def test_other_lines_preserved(self):
        """Only the cmdline assignment changes, every other line is kept byte for byte."""
        grub_defaults = GrubDefaults(GRUB_DEFAULTS)
        set_resume_param(grub_defaults, CMDLINE_VAR, "1234-ABCD")
        old_lines = GRUB_DEFAULTS.splitlines()
        new_lines = str(grub_defaults).splitlines()
        self.assertEqual(len(old_lines), len(new_lines))
        changed = [(old, new) for old, new in zip(old_lines, new_lines) if old != new]
        self.assertEqual(len(changed), 1)
        self.assertTrue(changed[0][0].startswith(CMDLINE_VAR))

    def test_idempotent(self):
        """Setting the same resume UUID twice produces the same file."""
        grub_defaults = GrubDefaults(GRUB_DEFAULTS)
        set_resume_param(grub_defaults, CMDLINE_VAR, "1234-ABCD")
        once = str(grub_defaults)
        grub_defaults = GrubDefaults(once)
        self.assertEqual(set_resume_param(grub_defaults, CMDLINE_VAR, "1234-ABCD"), ["resume=UUID=1234-ABCD"])
        self.assertEqual(str(grub_defaults), once)

    def test_replace_resume(self):
        """Old resume and resume_offset parameters are replaced, unrelated parameters are kept."""
        grub_defaults = GrubDefaults(
            'GRUB_CMDLINE_LINUX_DEFAULT="quiet resume=/dev/sdb1 resume_offset=34816 splash mem_sleep_default=deep"\n'
        )
        removed = set_resume_param(grub_defaults, CMDLINE_VAR, "1234-ABCD")
        self.assertEqual(removed, ["resume=/dev/sdb1", "resume_offset=34816"])
        self.assertEqual(
            str(grub_defaults),
            'GRUB_CMDLINE_LINUX_DEFAULT="quiet splash mem_sleep_default=deep resume=UUID=1234-ABCD"\n',
        )

    def test_bare_words_kept(self):
        """Bare words which look like resume keys are not removed."""
        grub_defaults = GrubDefaults('GRUB_CMDLINE_LINUX_DEFAULT="noresume resume"')
        self.assertEqual(set_resume_param(grub_defaults, CMDLINE_VAR, "1234-ABCD"), [])
        self.assertEqual(str(grub_defaults), 'GRUB_CMDLINE_LINUX_DEFAULT="noresume resume resume=UUID=1234-ABCD"')

    def test_similar_keys_kept(self):
        grub_defaults = GrubDefaults('GRUB_CMDLINE_LINUX_DEFAULT="resumewait=1 no_resume=1"')
        set_resume_param(grub_defaults, CMDLINE_VAR, "1234-ABCD")
        self.assertEqual(
            str(grub_defaults), 'GRUB_CMDLINE_LINUX_DEFAULT="resumewait=1 no_resume=1 resume=UUID=1234-ABCD"'
        )

    def test_single_quotes(self):
        grub_defaults = GrubDefaults("GRUB_CMDLINE_LINUX_DEFAULT='quiet'")
        set_resume_param(grub_defaults, CMDLINE_VAR, "1234-ABCD")
        self.assertEqual(str(grub_defaults), "GRUB_CMDLINE_LINUX_DEFAULT='quiet resume=UUID=1234-ABCD'")

    def test_bare_value_quoted(self):
        """A bare value is quoted once it holds more than one parameter."""
        grub_defaults = GrubDefaults("GRUB_CMDLINE_LINUX_DEFAULT=quiet")
        set_resume_param(grub_defaults, CMDLINE_VAR, "1234-ABCD")
        self.assertEqual(str(grub_defaults), 'GRUB_CMDLINE_LINUX_DEFAULT="quiet resume=UUID=1234-ABCD"')

    def test_empty_value(self):
        grub_defaults = GrubDefaults('GRUB_CMDLINE_LINUX_DEFAULT=""')
        set_resume_param(grub_defaults, CMDLINE_VAR, "1234-ABCD")
        self.assertEqual(str(grub_defaults), 'GRUB_CMDLINE_LINUX_DEFAULT="resume=UUID=1234-ABCD"')

    def test_every_assignment(self):
        """Each assignment of the variable is updated, the last one is what grub uses."""
        grub_defaults = GrubDefaults('GRUB_CMDLINE_LINUX_DEFAULT="quiet"\nGRUB_CMDLINE_LINUX_DEFAULT="splash"\n')
        set_resume_param(grub_defaults, CMDLINE_VAR, "1234-ABCD")
        self.assertEqual(
            [assignment.value for assignment in grub_defaults.assignments(CMDLINE_VAR)],
            ["quiet resume=UUID=1234-ABCD", "splash resume=UUID=1234-ABCD"],
        )

    def test_multiline_value(self):
        """A quoted value which continues on the next line is not parsed, and is written back unchanged."""
        text = 'GRUB_CMDLINE_LINUX_DEFAULT="quiet\nsplash"\n'
        grub_defaults = GrubDefaults(text)
        self.assertEqual(grub_defaults.assignments(CMDLINE_VAR), [])
        self.assertEqual(grub_defaults.unparsed(CMDLINE_VAR), ['GRUB_CMDLINE_LINUX_DEFAULT="quiet'])
        self.assertEqual(set_resume_param(grub_defaults, CMDLINE_VAR, "1234-ABCD"), [])
        self.assertEqual(str(grub_defaults), text)

    def test_value_followed_by_quote(self):
        for line in ['GRUB_CMDLINE_LINUX_DEFAULT="quiet', "GRUB_CMDLINE_LINUX_DEFAULT='quiet", 'GRUB_TIMEOUT=5"']:
            with self.subTest(line=line):
                self.assertIsNone(GrubAssignment.from_line(line))

    def test_unparsed_other_variable(self):
        grub_defaults = GrubDefaults('GRUB_CMDLINE_LINUX="quiet\nsplash"\nGRUB_CMDLINE_LINUX_DEFAULT=""\n')
        self.assertEqual(grub_defaults.unparsed(CMDLINE_VAR), [])
        self.assertEqual(grub_defaults.unparsed("GRUB_CMDLINE_LINUX"), ['GRUB_CMDLINE_LINUX="quiet'])

    def test_other_variable_untouched(self):
        grub_defaults = GrubDefaults('GRUB_CMDLINE_LINUX="resume=/dev/sdb1"\nGRUB_CMDLINE_LINUX_DEFAULT=""\n')
        set_resume_param(grub_defaults, CMDLINE_VAR, "1234-ABCD")
        self.assertEqual(grub_defaults.assignments("GRUB_CMDLINE_LINUX")[0].value, "resume=/dev/sdb1")


if __name__ == "__main__":
    main()
