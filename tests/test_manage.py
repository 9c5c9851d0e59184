"""
Tests for the maintenance commands.
"""
from unittest.mock import patch

from campusvote.manage import SAMPLE_POLLS, SAMPLE_VOTERS, main


class TestSeed:
    def test_seed_populates_every_collection(self, services, capsys):
        assert main(["seed"], services=services) == 0

        assert services.db.admins.count_documents({}) == 1
        assert services.db.voters.count_documents({}) == len(SAMPLE_VOTERS)
        assert services.db.polls.count_documents({"is_active": False}) == len(SAMPLE_POLLS)
        assert "Database seeded successfully!" in capsys.readouterr().out

    def test_seed_twice_replaces_data(self, services):
        main(["seed"], services=services)
        assert main(["seed"], services=services) == 0
        assert services.db.voters.count_documents({}) == len(SAMPLE_VOTERS)


class TestReset:
    def test_reset_with_confirmation_flag(self, services, make_voter):
        make_voter()
        assert main(["reset", "--yes"], services=services) == 0
        assert services.db.voters.count_documents({}) == 0

    def test_reset_cancelled(self, services, make_voter):
        make_voter()
        with patch("builtins.input", return_value="no"):
            main(["reset"], services=services)
        assert services.db.voters.count_documents({}) == 1


class TestCreateAdmin:
    def test_create_admin_from_env_password(self, services, monkeypatch):
        monkeypatch.setenv("ADMIN_PASSWORD", "s3cret-pass")

        assert main(["create-admin", "--name", "Ops", "--email", "ops@college.edu"], services=services) == 0

        identity, _ = services.accounts.login("ops@college.edu", "s3cret-pass", "admin")
        assert identity.role == "admin"

    def test_duplicate_admin_fails(self, services, monkeypatch, capsys):
        monkeypatch.setenv("ADMIN_PASSWORD", "s3cret-pass")
        argv = ["create-admin", "--name", "Ops", "--email", "ops@college.edu"]

        main(argv, services=services)
        assert main(argv, services=services) == 1
        assert "already exists" in capsys.readouterr().err


class TestImportRoster:
    def test_import_csv(self, services, tmp_path):
        path = tmp_path / "roster.csv"
        path.write_text(
            "reg_no,name,email,year,section,department\n"
            "22EC001,Anu,anu@college.edu,1,A,ECE\n"
            "22EC002,Bala,bala@college.edu,1,A,ECE\n"
        )

        assert main(["import-roster", str(path)], services=services) == 0
        assert services.db.voters.count_documents({"department": "ECE"}) == 2

    def test_invalid_rows_are_reported(self, services, tmp_path, capsys):
        path = tmp_path / "roster.csv"
        path.write_text("reg_no,name,email,year,section,department\n22EC001,Anu,anu,7,A,ECE\n")

        assert main(["import-roster", str(path)], services=services) == 1
        err = capsys.readouterr().err
        assert "Row 2: Invalid email format - anu" in err
        assert services.db.voters.count_documents({}) == 0

    def test_missing_file(self, services, tmp_path):
        assert main(["import-roster", str(tmp_path / "absent.xlsx")], services=services) == 1
