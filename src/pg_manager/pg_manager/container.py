from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Optional

from .admins.mysql_admin_repository import MySQLAdminRepository
from .admins.service import AdminService
from .auth.guards import Guards
from .auth.tokens import TokenService
from .common.uploads import UploadStore
from .dashboard.mysql_dashboard_repository import MySQLDashboardRepository
from .dashboard.service import DashboardService
from .database.connection import DBConfig, DatabaseConnection
from .database.mysql_base import transaction
from .enquiries.mysql_enquiry_repository import MySQLEnquiryRepository
from .enquiries.service import EnquiryService
from .expenses.mysql_expense_repository import MySQLExpenseRepository, MySQLExpenseStatsRepository
from .expenses.service import ExpenseService
from .leaving.dues import PendingDuesCalculator
from .leaving.mysql_leaving_repository import MySQLLeavingRequestRepository
from .leaving.service import LeavingRequestService
from .members.account_service import MemberAccountService
from .members.approval_service import MemberApprovalService
from .members.mysql_member_repository import MySQLMemberRepository
from .members.mysql_registered_member_repository import MySQLRegisteredMemberRepository
from .members.registration_service import RegistrationService
from .members.service import MemberService
from .notifications.mailer import Mailer, MailSettings
from .notifications.service import NotificationService
from .otp.mysql_otp_repository import MySQLOtpRepository
from .otp.service import OtpService
from .payments.mysql_payment_repository import MySQLPaymentRepository
from .payments.plans.factory import RentPlanFactory
from .payments.service import PaymentService
from .pgs.mysql_pg_repository import MySQLPgRepository
from .pgs.service import PgService
from .reports.member_report import MemberReportService
from .reports.mysql_report_repository import MySQLReportRepository
from .reports.service import ReportService
from .rooms.mysql_room_repository import MySQLRoomRepository
from .rooms.service import RoomService


@dataclass(frozen=True)
class Container:
    tokens: TokenService
    guards: Guards
    uploads: UploadStore
    otp_service: OtpService
    notifications: NotificationService

    admin_service: AdminService
    pg_service: PgService
    room_service: RoomService
    registration_service: RegistrationService
    approval_service: MemberApprovalService
    member_service: MemberService
    account_service: MemberAccountService
    payment_service: PaymentService
    leaving_service: LeavingRequestService
    expense_service: ExpenseService
    dashboard_service: DashboardService
    report_service: ReportService
    member_report_service: MemberReportService
    enquiry_service: EnquiryService


def build_container(
    *,
    db_config: dict,
    jwt_secret: str,
    jwt_expires_hours: int = 24,
    upload_root: str = "uploads",
    mail_settings: Optional[MailSettings] = None,
    company_name: str = "PG Manager",
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    tx = partial(transaction, conn)

    admins_repo = MySQLAdminRepository(conn)
    pgs_repo = MySQLPgRepository(conn)
    rooms_repo = MySQLRoomRepository(conn)
    members_repo = MySQLMemberRepository(conn)
    registered_repo = MySQLRegisteredMemberRepository(conn)
    payments_repo = MySQLPaymentRepository(conn)
    leaving_repo = MySQLLeavingRequestRepository(conn)
    expenses_repo = MySQLExpenseRepository(conn)
    expense_stats_repo = MySQLExpenseStatsRepository(conn)
    dashboard_repo = MySQLDashboardRepository(conn)
    reports_repo = MySQLReportRepository(conn)
    otps_repo = MySQLOtpRepository(conn)
    enquiries_repo = MySQLEnquiryRepository(conn)

    tokens = TokenService(jwt_secret, expires_hours=jwt_expires_hours)
    uploads = UploadStore(upload_root)
    otp_service = OtpService(otps_repo)
    notifications = NotificationService(Mailer(mail_settings or MailSettings()), company_name=company_name)

    pg_service = PgService(pgs_repo)
    payment_service = PaymentService(
        payments_repo,
        members_repo,
        plans=RentPlanFactory(),
        transaction=tx,
        uploads=uploads,
    )
    member_service = MemberService(members_repo, payments_repo, rooms_repo, pg_service, uploads=uploads)

    return Container(
        tokens=tokens,
        guards=Guards(tokens),
        uploads=uploads,
        otp_service=otp_service,
        notifications=notifications,
        admin_service=AdminService(admins_repo, tokens),
        pg_service=pg_service,
        room_service=RoomService(rooms_repo, pg_service),
        registration_service=RegistrationService(registered_repo, members_repo, pg_service, uploads=uploads),
        approval_service=MemberApprovalService(
            registered_repo,
            members_repo,
            rooms_repo,
            pg_service,
            payment_service,
            transaction=tx,
            uploads=uploads,
            otp=otp_service,
            notifier=notifications,
        ),
        member_service=member_service,
        account_service=MemberAccountService(
            members_repo, payments_repo, leaving_repo, tokens, otp=otp_service, notifier=notifications
        ),
        payment_service=payment_service,
        leaving_service=LeavingRequestService(
            leaving_repo,
            members_repo,
            PendingDuesCalculator(payments_repo),
            transaction=tx,
            uploads=uploads,
        ),
        expense_service=ExpenseService(expenses_repo, expense_stats_repo, pg_service, uploads=uploads),
        dashboard_service=DashboardService(dashboard_repo, payment_service),
        report_service=ReportService(reports_repo, payment_service),
        member_report_service=MemberReportService(member_service, payments_repo, leaving_repo, uploads=uploads),
        enquiry_service=EnquiryService(enquiries_repo),
    )
